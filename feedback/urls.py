from django.urls import path

from . import views

urlpatterns = [
    path('contact', views.submit_contact, name='submit_contact'),
    path('guidance', views.save_guidance, name='save_guidance'),
    path('admin/messages', views.admin_messages, name='admin_messages'),
    path('admin/messages/<int:message_id>', views.admin_message_detail, name='admin_message_detail'),
    path('admin/guidance', views.admin_guidance, name='admin_guidance'),
    path('admin/guidance/<int:record_id>', views.admin_guidance_detail, name='admin_guidance_detail'),
    path('admin/dashboard', views.admin_dashboard, name='admin_dashboard'),
]
