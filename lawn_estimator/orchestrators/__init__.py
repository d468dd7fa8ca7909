"""Session orchestration.

- workflow: CaptureWorkflow, the address -> property -> exclusions ->
  result state machine
"""
