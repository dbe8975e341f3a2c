from django.urls import path

from . import views

app_name = 'dbmanager'

urlpatterns = [
    path('tables', views.tables, name='tables'),
    path('tables/<str:table>', views.table_detail, name='table-detail'),
    path('tables/<str:table>/columns', views.add_column, name='add-column'),
    path('rows/<str:table>', views.insert_row, name='insert-row'),
    path('rows/<str:table>/<int:row_id>', views.row_detail, name='row-detail'),
]
