from django.db import models

from generation.registry import action_choices


class Template(models.Model):
    """
    .docx template bound to one action (arrange-venue, cancel-notary, ...).
    - Text placeholders: {{ Claimant_Name }}, {{ Event_Date }}.
    - Image placeholders: {{%logo}} or {%logo}.
    Replacing or deleting the file invalidates the cached field schema of
    its action (see signals.py).
    """

    action_slug = models.CharField(max_length=64, unique=True, choices=action_choices())
    name = models.CharField(max_length=120)
    file = models.FileField(upload_to="templates/")
    active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        permissions = [
            ("download_full_document", "Can download full (unmasked) documents"),
        ]

    def __str__(self):
        return f"{self.name} ({self.action_slug})"

    def read_bytes(self) -> bytes:
        with self.file.open("rb") as fh:
            return fh.read()
