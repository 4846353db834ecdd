from rest_framework import serializers
from .models import Template
from django.conf import settings
from django.core.exceptions import ValidationError
from zipfile import BadZipFile, ZipFile
import os


class TemplateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Template
        fields = ["id", "action_slug", "name", "file", "active", "created_at", "updated_at"]
        read_only_fields = ["created_at", "updated_at"]

    def validate_file(self, f):
        """Template upload rules:
        - .docx only
        - at most DOCGEN_TEMPLATE_MAX_UPLOAD_MB
        - a real Word package (zip holding word/document.xml)
        """
        ext = os.path.splitext(f.name)[1].lower()
        if ext != ".docx":
            raise ValidationError("Upload a valid .docx file (only .docx is accepted).")
        max_mb = settings.DOCGEN_TEMPLATE_MAX_UPLOAD_MB
        if getattr(f, "size", 0) and f.size > max_mb * 1024 * 1024:
            raise ValidationError(f"Maximum allowed size: {max_mb}MB.")
        try:
            with ZipFile(f) as z:
                has_body = "word/document.xml" in z.namelist()
        except BadZipFile:
            has_body = False
        finally:
            f.seek(0)
        if not has_body:
            raise ValidationError("The file is not a Word document (word/document.xml missing).")
        return f


class FieldSpecSerializer(serializers.Serializer):
    name = serializers.CharField()
    type = serializers.CharField()
    label = serializers.CharField()
    section = serializers.CharField()
    options = serializers.ListField(child=serializers.CharField(), required=False)
    blank_allowed = serializers.BooleanField()
    placeholder = serializers.CharField(required=False, allow_null=True)
    full_width = serializers.BooleanField()


class GenerateRequestSerializer(serializers.Serializer):
    data = serializers.DictField(required=False, default=dict)
    images = serializers.DictField(child=serializers.CharField(), required=False, default=dict)
    preview = serializers.BooleanField(required=False, default=False)
