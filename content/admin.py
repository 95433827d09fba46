from django.contrib import admin
from content.models import ImageFile, Person, Article


@admin.register(ImageFile)
class ImageFileAdmin(admin.ModelAdmin):
    list_display = ("id", "filename", "uri", "created_at")
    search_fields = ("filename", "uri")


@admin.register(Person)
class PersonAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "created_at")
    search_fields = ("name",)
    filter_horizontal = ("faces",)


@admin.register(Article)
class ArticleAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "image", "created_at")
    search_fields = ("title",)
    filter_horizontal = ("people",)
