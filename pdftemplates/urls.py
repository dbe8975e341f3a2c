from django.urls import path

from . import views

app_name = 'pdftemplates'

urlpatterns = [
    path('pdf-templates', views.template_list, name='template-list'),
    path('pdf-templates/preview-file', views.preview_file, name='preview-file'),
    path('pdf-templates/<slug:key>', views.template_detail, name='template-detail'),
    path('pdf-templates/<slug:key>/upload', views.upload, name='upload'),
    path('pdf-templates/<slug:key>/preview', views.preview, name='preview'),
    path('pdf-templates/<slug:key>/dimensions', views.dimensions, name='dimensions'),
    path('pdf-templates/<slug:key>/coordinate-test', views.coordinate_test, name='coordinate-test'),
    path('pdf-templates/<slug:key>/generate-bulk', views.generate_bulk, name='generate-bulk'),

    path('bulk/<str:session_id>/<int:index>/view', views.bulk_view, name='bulk-view'),
    path('bulk/<str:session_id>/<int:index>/download', views.bulk_download, name='bulk-download'),
    path('bulk/<str:session_id>/zip', views.bulk_zip, name='bulk-zip'),

    # database data source
    path('available-tables', views.available_tables, name='available-tables'),
    path('table-records/<str:table>', views.table_records, name='table-records'),
]
