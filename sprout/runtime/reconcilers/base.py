from pathlib import Path
from typing import List, Protocol


class PlatformReconciler(Protocol):
    def reconcile(
        self,
        manifest_path: Path,
        requested_platforms: List[str],
        plugin_class: str,
        android_identifier: str,
    ) -> List[str]:
        """Declare every requested platform in the manifest; return those added."""
        ...
