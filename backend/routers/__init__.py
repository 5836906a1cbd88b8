"""
API routers for the Care Worklist backend.

- worklist: Daily caregiver worklist and its summary
"""

from .worklist import router as worklist_router

__all__ = [
    'worklist_router',
]
