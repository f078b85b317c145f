from django.urls import path

from . import views

urlpatterns = [
    path('pages/<str:page_name>', views.page_sections, name='page_sections'),
    path('admin/pages', views.admin_pages, name='admin_pages'),
    path('admin/pages/<int:section_id>', views.admin_page_detail, name='admin_page_detail'),
]
