from rest_framework.routers import DefaultRouter
from .views import ActivityFeedViewSet

router = DefaultRouter()
router.register('activity', ActivityFeedViewSet, basename='activity')

urlpatterns = router.urls
