from django.contrib import admin

from .models import Report, ReportCategory, ReportComment, ReportPhoto


class ReportPhotoInline(admin.TabularInline):
    model = ReportPhoto
    extra = 0
    readonly_fields = ("position", "public_url", "storage_path")


class ReportCommentInline(admin.TabularInline):
    model = ReportComment
    extra = 0
    readonly_fields = ("commenter", "text", "created_at")


@admin.register(ReportCategory)
class ReportCategoryAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "is_active")
    list_filter = ("is_active",)
    filter_horizontal = ("responsible_roles",)


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "status", "category", "is_public",
                    "assigned_to", "updated_at")
    list_filter = ("status", "category", "is_public")
    search_fields = ("title", "description")
    raw_id_fields = ("reporter", "assigned_from", "assigned_to",
                     "maintainer", "updated_by")
    inlines = [ReportPhotoInline, ReportCommentInline]


@admin.register(ReportComment)
class ReportCommentAdmin(admin.ModelAdmin):
    list_display = ("id", "report", "commenter", "created_at")
    search_fields = ("text",)
    raw_id_fields = ("report", "commenter")
