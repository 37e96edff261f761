# Management commands (python -m tools.manage)
