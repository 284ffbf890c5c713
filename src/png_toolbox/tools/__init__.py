"""Tool sub-packages — each ships a ``tool.py`` discovered by ``ToolRegistry``."""
