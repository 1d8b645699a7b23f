"""JSON serialization of requirement documents."""

import json
import logging
from pathlib import Path
from typing import Union

from .analyze.types import Platform, RequirementsDocument
from .errors import DocumentWriteError

logger = logging.getLogger(__name__)


def document_filename(document: RequirementsDocument) -> str:
    if document.platform is Platform.KUBERNETES:
        return f"requirements-k8s-{document.environment}.json"
    return f"requirements-{document.environment}.json"


def render_document(document: RequirementsDocument) -> str:
    return json.dumps(document.to_dict(), indent=2, ensure_ascii=False) + "\n"


def write_document(document: RequirementsDocument, output_dir: Union[str, Path]) -> Path:
    """Write ``document`` into ``output_dir`` and return the file path.

    Raises:
        DocumentWriteError: if the document cannot be serialized or written
    """
    target = Path(output_dir) / document_filename(document)
    try:
        payload = render_document(document)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(payload, encoding="utf-8")
    except (OSError, TypeError, ValueError) as e:
        raise DocumentWriteError(target, str(e)) from e
    logger.debug(f"Wrote {target}")
    return target
