from django.urls import path

from . import views

app_name = 'submissions'

urlpatterns = [
    path('submissions', views.submission_list, name='submission-list'),
    path('submissions/<int:pk>', views.submission_detail, name='submission-detail'),
]
