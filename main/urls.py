from django.urls import path
from main.views import auth_views, role_views


app_name = 'main'


urlpatterns = [
    path('auth-login', auth_views.login, name='login'),
    path('auth-logout', auth_views.logout, name='logout'),
    path('auth-me', auth_views.me, name='me'),

    path('roles', role_views.list_roles, name='role-list'),
    path('roles/<str:role_code>', role_views.get_role, name='role-detail'),
]
