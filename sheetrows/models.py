from django.conf import settings
from django.db import models


class EditorSettings(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="editor_settings")
    script_url = models.URLField(max_length=500, blank=True)   # Apps Script web app /exec URL
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "editor settings"

    def __str__(self):
        return f"{self.user} - {self.script_url or '(default)'}"

    @classmethod
    def for_user(cls, user):
        """Saved settings for ``user``, or an unsaved instance if none exist yet."""
        obj = cls.objects.filter(user=user).first()
        return obj or cls(user=user)

    @property
    def effective_script_url(self):
        return self.script_url or settings.DEFAULT_SCRIPT_URL
