from .base import PlatformReconciler
from .text_scan import TextScanReconciler, insert_platform_blocks, locate_platforms_anchor


def get_reconciler(name: str = "text", **kwargs) -> PlatformReconciler:
    if name == "text":
        return TextScanReconciler(**kwargs)
    else:
        raise ValueError(f"Unknown reconciler: {name}")
