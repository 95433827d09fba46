from django.db import models


class ImageFile(models.Model):
    """Entidad 'file': una imagen guardada en S3 (s3://bucket/key) o en disco."""
    uri = models.CharField(max_length=512, verbose_name="URI")
    filename = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "content_file"
        ordering = ["-created_at"]
        verbose_name = "Archivo"
        verbose_name_plural = "Archivos"

    def __str__(self):
        return self.filename or self.uri


class Person(models.Model):
    name = models.CharField(max_length=150, verbose_name="Nombre")
    faces = models.ManyToManyField(ImageFile, related_name="people", blank=True, verbose_name="Caras")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "content_person"
        ordering = ["name"]
        verbose_name = "Persona"
        verbose_name_plural = "Personas"

    def __str__(self):
        return self.name


class Article(models.Model):
    title = models.CharField(max_length=150, verbose_name="Título")
    body = models.TextField(blank=True, verbose_name="Contenido")
    image = models.ForeignKey(
        ImageFile, on_delete=models.SET_NULL, null=True, blank=True, related_name="articles"
    )
    # se rellena con las personas reconocidas en `image`
    people = models.ManyToManyField(Person, related_name="articles", blank=True, verbose_name="Personas detectadas")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "content_article"
        ordering = ["-created_at"]
        verbose_name = "Artículo"
        verbose_name_plural = "Artículos"

    def __str__(self):
        return self.title
