from django.urls import path
from sheetrows import views


urlpatterns = [
    path('',views.home,name='home'),
    path('signup/',views.sign_up,name='signup'),
    path('verify-otp/', views.verify_otp, name='verify_otp'),
    path('login/',views.user_login,name='login'),
    path('logout/',views.user_logout,name='logout'),
    path('sheet/',views.sheet_view,name='sheet'),
    path('sheet/row/<int:row_index>/edit/',views.edit_row,name='edit_row'),
    path('sheet/download/',views.download_rows,name='download_rows'),
    path('settings/',views.editor_settings,name='editor_settings'),
    path('api/token/',views.api_token,name='api_token'),
    path('api/update-sheet/',views.update_sheet,name='update_sheet'),
]
