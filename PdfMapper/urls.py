from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static
from django.http import JsonResponse

from submissions.views import generate_submission_pdf


def health(request):
    return JsonResponse({'status': 'ok'})


urlpatterns = [
    path('', health, name='health'),
    path('admin/', admin.site.urls),
    path('api/', include(('pdftemplates.urls', 'pdftemplates'), namespace='pdftemplates')),
    path('api/', include(('dataimports.urls', 'dataimports'), namespace='dataimports')),
    path('api/', include(('submissions.urls', 'submissions'), namespace='submissions')),
    path('api/erp/', include(('erp.urls', 'erp'), namespace='erp')),
    path('api/database/', include(('dbmanager.urls', 'dbmanager'), namespace='dbmanager')),
    path('app/generate-submission-pdf/<int:record_id>', generate_submission_pdf, name='generate-submission-pdf'),
    path('app/generate-submission-pdf/<int:record_id>/<str:template_key>', generate_submission_pdf,
         name='generate-submission-pdf-template'),
] + static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
