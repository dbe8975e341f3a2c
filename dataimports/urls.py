from django.urls import path

from . import views

app_name = 'dataimports'

urlpatterns = [
    path('pdf-templates/<int:template_id>/import', views.template_import, name='template-import'),
]
