from rest_framework.routers import DefaultRouter
from .views import AIViewSet, AIJobViewSet

router = DefaultRouter()
router.register('ai', AIViewSet, basename='ai')
router.register('ai-jobs', AIJobViewSet, basename='ai-job')

urlpatterns = router.urls
