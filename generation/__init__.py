from .exceptions import GenerationError, MissingVariables, TemplateMergeError  # noqa: F401
from .pipeline import DOCX_CONTENT_TYPE, build_document, generate_document, resolve_schema  # noqa: F401
