from dataclasses import dataclass
from typing import Optional

from core.document import Document


@dataclass(frozen=True)
class ScanContext:
    url: str  # base URL of the scanned site; readme URLs are built from it
    document: Document
    status_code: Optional[int] = None
