from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Protocol, Tuple

from studio.app.domain.generation import GenerationResult

# field name -> (filename, content, content_type)
FileParts = Dict[str, Tuple[str, bytes, str]]


@dataclass
class GenerationApiError(Exception):
    code: str
    message: str
    raw: Optional[object] = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class GenerationApi(Protocol):
    async def generate(
        self,
        *,
        fields: Dict[str, str],
        files: FileParts,
        request_id: str,
    ) -> GenerationResult:
        """Submit one multipart generation request or raise GenerationApiError."""
