from django.urls import path, include

urlpatterns = [
    path('api/auth/', include('authapi.urls')),
    path('api/notes/', include('notes.urls')),
]
