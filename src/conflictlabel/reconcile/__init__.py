from conflictlabel.reconcile.dirty_check import check_dirty

__all__ = [
    "check_dirty",
]
