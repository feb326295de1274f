"""
TaskLib - Background work

This module runs blocking image work off the UI thread with
cancellable, keyed task handles.
"""

from SB_Libs.TaskLib.decode_tasks import BackgroundTasks, TaskHandle

__all__ = [
    "BackgroundTasks",
    "TaskHandle",
]
