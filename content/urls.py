from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import ImageFileViewSet, PersonViewSet, ArticleViewSet

router = DefaultRouter()
router.register(r'files', ImageFileViewSet, basename="file")
router.register(r'people', PersonViewSet, basename="person")
router.register(r'articles', ArticleViewSet, basename="article")

urlpatterns = [
    path("", include(router.urls)),
]
