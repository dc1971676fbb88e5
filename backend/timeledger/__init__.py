"""TimeLedger - task log time tracking backend."""
