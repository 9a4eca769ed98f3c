"""
Parsing of the validator call's free-text reply.

The model is asked for one JSON object but may wrap it in prose or code
fences. The payload is taken from the first "{" to the last "}" of the
reply; if that span is not valid JSON (a stray brace in trailing prose),
the first balanced-brace object is tried before giving up. The result is
then validated against the InvoiceExtraction schema.
"""

import json
import re

from loguru import logger
from pydantic import ValidationError

from ..models.invoice import InvoiceData, InvoiceExtraction, InvoiceValidation
from .errors import MalformedJsonError, NoJsonFoundError

JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")


def find_balanced_object(text: str) -> str | None:
    """Return the first balanced {...} span, honouring JSON string escapes"""
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def extract_json_object(text: str) -> dict:
    """
    Locate and decode the JSON object embedded in a model reply.

    Raises:
        NoJsonFoundError: no "{...}" span in the text
        MalformedJsonError: the span is not a JSON object
    """
    match = JSON_OBJECT_PATTERN.search(text or "")
    if not match:
        raise NoJsonFoundError("No JSON object found in AI response")

    candidate = match.group(0)
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        balanced = find_balanced_object(candidate)
        if balanced is None or balanced == candidate:
            raise MalformedJsonError(f"AI response is not valid JSON: {e}") from e
        try:
            parsed = json.loads(balanced)
        except json.JSONDecodeError as inner:
            raise MalformedJsonError(f"AI response is not valid JSON: {inner}") from inner
        logger.debug("Recovered JSON object with balanced-brace scan")

    return parsed


def parse_validation_response(text: str) -> InvoiceExtraction:
    """
    Parse the validator reply into a typed InvoiceExtraction.

    The validation block is always checked. The data block is only held to
    the schema for valid invoices; a rejected document keeps whatever data
    parses and falls back to an empty InvoiceData otherwise.
    """
    payload = extract_json_object(text)
    try:
        validation = InvoiceValidation.model_validate(payload.get("validation"))
    except ValidationError as e:
        raise MalformedJsonError(f"AI response does not match the invoice schema: {e}") from e

    raw_data = payload.get("data") or {}
    if not validation.is_valid_invoice:
        try:
            data = InvoiceData.model_validate(raw_data)
        except ValidationError as e:
            logger.debug("Ignoring unusable data of rejected document: {}", e)
            data = InvoiceData()
        return InvoiceExtraction(validation=validation, data=data)

    try:
        data = InvoiceData.model_validate(raw_data)
    except ValidationError as e:
        raise MalformedJsonError(f"AI response does not match the invoice schema: {e}") from e
    return InvoiceExtraction(validation=validation, data=data)
