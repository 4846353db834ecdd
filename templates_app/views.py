import base64
import binascii
import logging
import re

from django.apps import apps
from django.conf import settings
from django.http import FileResponse, HttpResponse
from django.utils.encoding import iri_to_uri

from rest_framework import viewsets, permissions, status
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

from generation import DOCX_CONTENT_TYPE, build_document, resolve_schema
from generation.countries import default_country_table
from generation.exceptions import (
    DerivationError,
    GenerationError,
    MissingVariables,
    UnknownAction,
)
from generation.masking import SENSITIVE_VARIABLES
from generation.placeholders import canonicalize_image_key
from generation.registry import get_action
from generation.schema import input_fields, required_names

from .filters import TemplateFilter
from .models import Template
from .serializers import FieldSpecSerializer, GenerateRequestSerializer, TemplateSerializer

logger = logging.getLogger(__name__)

DATA_URL_RE = re.compile(r"^data:image/[\w.+-]+;base64,")
FULL_DOWNLOAD_PERMISSION = "templates_app.download_full_document"


class IsAdminOrReadOnly(permissions.BasePermission):
    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return bool(request.user and request.user.is_authenticated)
        return bool(request.user and request.user.is_staff)


def decode_images(payload):
    """{"logo": "data:image/png;base64,..."} -> {"logo": b"..."}

    Raises ValueError naming the first key that is not a base64 image.
    """
    images = {}
    for key, value in (payload or {}).items():
        match = DATA_URL_RE.match(value or "")
        if not match:
            raise ValueError(f"Image '{key}' must be a base64 data URL (data:image/...;base64,...).")
        try:
            images[canonicalize_image_key(key)] = base64.b64decode(value[match.end():], validate=True)
        except (binascii.Error, ValueError):
            raise ValueError(f"Image '{key}' is not valid base64.") from None
    return images


class TemplateViewSet(viewsets.ModelViewSet):
    """
    Template CRUD + generation:

      - GET  /api/templates/{slug}/fields/    -> form metadata of the action
      - GET  /api/templates/{slug}/file/      -> stored .docx (admin)
      - POST /api/templates/{slug}/generate/  -> merged .docx (full or preview)

    Rules:
    - Only staff can upload, replace or delete templates.
    - Users without the download_full_document permission only get previews.
    - Placeholders are strict: a missing value fails the request.
    """
    queryset = Template.objects.all().order_by("name")
    serializer_class = TemplateSerializer
    permission_classes = [IsAdminOrReadOnly]
    filterset_class = TemplateFilter
    search_fields = ["name", "action_slug"]
    ordering_fields = ["name", "action_slug", "updated_at"]
    lookup_field = "action_slug"

    @property
    def schema_cache(self):
        return apps.get_app_config("templates_app").schema_cache

    def _active_template(self):
        tpl = self.get_object()
        if not tpl.active:
            raise NotFound("Template is not active.")
        return tpl

    @action(detail=True, methods=["get"])
    def fields(self, request, action_slug=None):
        try:
            config = get_action(action_slug)
        except UnknownAction as exc:
            raise NotFound(str(exc))
        tpl = self._active_template()

        schema = resolve_schema(config, tpl.read_bytes(), self.schema_cache)
        return Response({
            "action_slug": config.slug,
            "template": tpl.name,
            "template_file": config.template,
            "automation": config.automation,
            "fields": FieldSpecSerializer(input_fields(schema), many=True).data,
            "required": required_names(schema),
            "computed": [f.name for f in schema if f.computed],
            "countries": [
                {"name": c.name, "code": c.code, "label": c.label} for c in default_country_table
            ],
        })

    @action(detail=True, methods=["get"], permission_classes=[permissions.IsAdminUser])
    def file(self, request, action_slug=None):
        tpl = self.get_object()
        return FileResponse(
            tpl.file.open("rb"),
            as_attachment=True,
            filename=f"{tpl.action_slug}.docx",
            content_type=DOCX_CONTENT_TYPE,
        )

    @action(detail=True, methods=["post"], permission_classes=[permissions.IsAuthenticated])
    def generate(self, request, action_slug=None):
        tpl = self._active_template()

        payload = GenerateRequestSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        preview = payload.validated_data["preview"]

        entitled = request.user.has_perm(FULL_DOWNLOAD_PERMISSION)
        if not preview and not entitled:
            return Response(
                {"detail": "Full download requires an active subscription."},
                status=status.HTTP_403_FORBIDDEN,
            )

        try:
            images = decode_images(payload.validated_data["images"])
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            content = build_document(
                tpl.action_slug,
                tpl.read_bytes(),
                payload.validated_data["data"],
                images,
                entitled=entitled,
                preview=preview,
                cache=self.schema_cache,
                sensitive_keys=settings.DOCGEN_SENSITIVE_VARIABLES or SENSITIVE_VARIABLES,
            )
        except UnknownAction as exc:
            raise NotFound(str(exc))
        except MissingVariables as exc:
            return Response(
                {"detail": str(exc), "missing": exc.missing},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except DerivationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except GenerationError:
            logger.exception(
                "Document generation failed for %s (template %s, images %s)",
                tpl.action_slug, tpl.pk, sorted(images),
            )
            return Response(
                {"detail": "Document generation failed."},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        suffix = "-preview" if preview or not entitled else ""
        safe_fn = iri_to_uri(f"{tpl.action_slug}{suffix}.docx")
        resp = HttpResponse(content, content_type=DOCX_CONTENT_TYPE)
        resp["Content-Disposition"] = f'attachment; filename="{safe_fn}"'
        return resp
