from rest_framework.routers import DefaultRouter
from .views import SurveyViewSet, ResponseViewSet

router = DefaultRouter()
router.register('surveys', SurveyViewSet, basename='survey')
router.register('responses', ResponseViewSet, basename='response')

urlpatterns = router.urls
