from rest_framework.routers import SimpleRouter
from .views import TemplateViewSet
router = SimpleRouter()
router.register(r"", TemplateViewSet, basename="templates")
urlpatterns = router.urls
