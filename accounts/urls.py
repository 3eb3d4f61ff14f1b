"""
URL routing for accounts app.
"""
from django.urls import path

from .auth import login, register, logout, me

urlpatterns = [
    path('login/', login, name='login'),
    path('register/', register, name='register'),
    path('logout/', logout, name='logout'),
    path('me/', me, name='me'),
]
