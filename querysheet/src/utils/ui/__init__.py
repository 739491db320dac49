from .console_ui_manager import ConsoleUIManager

__all__ = ['ConsoleUIManager']
