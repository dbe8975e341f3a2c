from django.urls import path

from . import views

app_name = 'erp'

urlpatterns = [
    path('status', views.status, name='status'),
    path('records/<str:doctype>', views.records, name='records'),
    path('records/<str:doctype>/<str:name>', views.record, name='record'),
    path('generate-pdfs', views.generate_pdfs, name='generate-pdfs'),
    path('doctypes', views.doctypes, name='doctypes'),
    path('reports', views.reports, name='reports'),
    path('report-columns', views.report_columns, name='report-columns'),
    path('report-data', views.report_data, name='report-data'),
    path('companies', views.companies, name='companies'),
    path('templates', views.templates, name='templates'),
    path('generate-pdf', views.generate_pdf, name='generate-pdf'),
]
