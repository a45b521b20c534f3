"""
Extraction du JSON dans les réponses IA.

Les modèles renvoient parfois du JSON entouré de ```json ... ``` ou suivi
d'un commentaire. On décode la première valeur JSON complète avec un
décodeur incrémental (il suit lui-même l'imbrication des accolades), puis
on valide la forme avec Pydantic.
"""

import json
import re
from typing import Any, Type, TypeVar

from pydantic import TypeAdapter, ValidationError

T = TypeVar("T")

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_decoder = json.JSONDecoder()


class ResponseParseError(ValueError):
    pass


def parse_json(text: str) -> Any:
    """Retourne le premier objet ou tableau JSON valide trouvé dans `text`."""
    if not text:
        raise ResponseParseError("Empty AI response")

    cleaned = _FENCE_RE.sub("", text).strip()

    for index, char in enumerate(cleaned):
        if char not in "{[":
            continue
        try:
            value, _ = _decoder.raw_decode(cleaned, index)
        except json.JSONDecodeError:
            continue
        return value

    raise ResponseParseError(f"No JSON value found in AI response: {cleaned[:80]!r}")


def parse_model(text: str, schema: Type[T]) -> T:
    """parse_json + validation stricte de la forme attendue."""
    payload = parse_json(text)
    try:
        return TypeAdapter(schema).validate_python(payload)
    except ValidationError as e:
        raise ResponseParseError(f"Unexpected AI response shape: {e.error_count()} error(s)") from e
