from django.contrib import admin
from .models import EditorSettings

@admin.register(EditorSettings)
class EditorSettingsAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "script_url", "updated_at")
    search_fields = ("user__username", "user__email", "script_url")
