"""
Generation pipeline: derive -> validate -> merge -> normalize, with the
preview variant masking the data before the merge and adding the banner
after it.
"""
import logging
from typing import Any, Iterable, List, Mapping, Optional

from .countries import CountryTable, default_country_table
from .derivation import default_steps, derive_fields
from .extraction import infer_field_schema
from .masking import SENSITIVE_VARIABLES, inject_banner, mask_data
from .merge import merge_document
from .registry import ActionConfig, get_action
from .schema import FieldSpec, SchemaCache
from .styles import normalize_stylesheet
from .validation import validate_variables

logger = logging.getLogger(__name__)

DOCX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def generate_document(
    template: bytes,
    data: Mapping[str, Any],
    images: Optional[Mapping[str, bytes]] = None,
    preview: bool = False,
    sensitive_keys: Iterable[str] = SENSITIVE_VARIABLES,
) -> bytes:
    """Produce the full document, or the masked preview when `preview` is set.

    The preview never sees unmasked values: masking happens before the merge.
    """
    if preview:
        merged = merge_document(template, mask_data(data, sensitive_keys), images)
        return inject_banner(normalize_stylesheet(merged))
    return normalize_stylesheet(merge_document(template, data, images))


def resolve_schema(
    action: ActionConfig,
    template: bytes,
    cache: Optional[SchemaCache] = None,
) -> List[FieldSpec]:
    if action.fields:
        return list(action.fields)
    if cache is None:
        return infer_field_schema(template)
    return cache.get_or_build(action.slug, lambda: infer_field_schema(template))


def build_document(
    action_slug: str,
    template: bytes,
    raw_input: Mapping[str, Any],
    images: Optional[Mapping[str, bytes]] = None,
    entitled: bool = False,
    preview: bool = False,
    cache: Optional[SchemaCache] = None,
    countries: CountryTable = default_country_table,
    sensitive_keys: Iterable[str] = SENSITIVE_VARIABLES,
) -> bytes:
    """Build the document for `action_slug` from raw form input.

    Users without entitlement always get the preview.
    """
    action = get_action(action_slug)
    schema = resolve_schema(action, template, cache)

    derived = derive_fields(raw_input, default_steps(countries, action.time_seed))
    data = validate_variables(derived, schema)

    as_preview = preview or not entitled
    result = generate_document(template, data, images, preview=as_preview, sensitive_keys=sensitive_keys)
    logger.info(
        "Generated %s document for %s (%d bytes)",
        "preview" if as_preview else "full", action_slug, len(result),
    )
    return result
