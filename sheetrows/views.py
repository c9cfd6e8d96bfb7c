import json
import logging
import secrets
from urllib.parse import urlsplit

from django.conf import settings
from django.contrib import messages
from django.contrib.auth import authenticate, login, logout
from django.contrib.auth.hashers import make_password
from django.contrib.auth.models import User
from django.contrib.auth.decorators import login_required
from django.core.mail import send_mail
from django.http import Http404, HttpResponse, HttpResponseForbidden, JsonResponse
from django.shortcuts import redirect, render
from django.views.decorators.cache import never_cache
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from .forms import EditorSettingsForm, EmailLoginForm, RowEditForm, SignUP
from .models import EditorSettings
from .utils.api_tokens import bearer_token, issue_token, user_from_token
from .utils.apps_script import APPS_SCRIPT_SOURCE, SETUP_STEPS
from .utils.errors import AuthError, SheetError, UnknownError, ValidationError
from .utils.export import table_to_excel_bytes
from .utils.ownership import is_owner
from .utils.sheet_loader import load_table
from .utils.update_proxy import forward_update

logger = logging.getLogger(__name__)

LOAD_FAILED = "Could not load sheet data, please try again later."

# Cells in these columns are shortened on the table page.
TRUNCATE_HEADERS = {"iglink", "apikey"}
TRUNCATE_AT = 10


def format_cell(cell, header):
    key = header.lower().replace(" ", "")
    if key in TRUNCATE_HEADERS and len(cell) > TRUNCATE_AT:
        return cell[:TRUNCATE_AT] + "..."
    return cell


# ==============================================================
# HOME
# ==============================================================

def home(request):
    if request.user.is_authenticated:
        return redirect('sheet')
    return redirect('login')


# ==============================================================
# SIGNUP (email verified with a one-time code)
# ==============================================================

OTP_MAX_ATTEMPTS = 5


def _clear_signup(session):
    for key in ('temp_user', 'otp', 'otp_attempts'):
        session.pop(key, None)


def sign_up(request):
    if request.user.is_authenticated:
        return redirect('sheet')

    if request.method == 'POST':
        form = SignUP(request.POST)
        if form.is_valid():
            email = form.cleaned_data['email']
            otp = f"{secrets.randbelow(900000) + 100000}"

            # the account is only created once the code comes back
            request.session['temp_user'] = {
                'email': email,
                'password': make_password(form.cleaned_data['password1']),
            }
            request.session['otp'] = otp
            request.session['otp_attempts'] = 0

            try:
                send_mail(
                    'Your OTP Verification',
                    f'Your OTP is: {otp}',
                    settings.DEFAULT_FROM_EMAIL,
                    [email],
                    fail_silently=False,
                )
            except OSError as e:
                logger.error("Could not send OTP to %s: %s", email, e)
                _clear_signup(request.session)
                messages.error(request, "Could not send the verification email. Please try again later.")
            else:
                return redirect('verify_otp')
    else:
        form = SignUP()

    return render(request, 'sheetrows/signup.html', {'form': form})


def verify_otp(request):
    if 'otp' not in request.session or 'temp_user' not in request.session:
        return redirect('signup')

    user_data = request.session['temp_user']

    if request.method == "POST":
        entered = (request.POST.get('otp') or '').strip()
        real_otp = request.session['otp']

        if secrets.compare_digest(entered.encode(), real_otp.encode()):
            _clear_signup(request.session)

            if User.objects.filter(email__iexact=user_data['email']).exists():
                messages.error(request, "This email is already taken. Please use a different email.")
                return redirect('signup')

            User.objects.create(
                username=user_data['email'],
                email=user_data['email'],
                password=user_data['password'],
            )
            messages.success(request, "Account Verified Successfully! Sign in to continue.")
            return redirect('login')

        attempts = request.session.get('otp_attempts', 0) + 1
        if attempts >= OTP_MAX_ATTEMPTS:
            _clear_signup(request.session)
            messages.error(request, "Too many invalid codes. Please sign up again.")
            return redirect('signup')

        request.session['otp_attempts'] = attempts
        messages.error(request, "Invalid OTP. Try again.")

    return render(request, 'sheetrows/verify_otp.html', {'email': user_data['email']})


# ==============================================================
# LOGIN / LOGOUT
# ==============================================================

@never_cache
def user_login(request):
    if request.user.is_authenticated:
        return redirect('sheet')

    if request.method == 'POST':
        form = EmailLoginForm(request=request, data=request.POST)

        if form.is_valid():
            email = form.cleaned_data['username']
            user = authenticate(request, username=email, password=form.cleaned_data['password'])

            if user is not None:
                login(request, user)
                messages.success(request, f"Hi {user.email}, signed in successfully!")
                return redirect('sheet')

        messages.error(request, "Invalid email or password.")
    else:
        form = EmailLoginForm()

    return render(request, 'sheetrows/login.html', {'form': form})


def user_logout(request):
    logout(request)
    return redirect('login')


# ==============================================================
# SHEET TABLE
# ==============================================================

@never_cache
@login_required
def sheet_view(request):
    identity = request.user.email
    only_mine = request.GET.get("mine") in ("1", "true", "on")
    script_url = EditorSettings.for_user(request.user).effective_script_url

    try:
        table = load_table(identity if only_mine else None)
    except SheetError as e:
        logger.error("Error loading sheet data: %s", e)
        messages.error(request, LOAD_FAILED)
        table = None

    rows = []
    if table is not None:
        for row in table.rows:
            width = max(len(table.headers), len(row.data))
            cells = list(row.data) + [""] * (width - len(row.data))
            headers = table.headers + [""] * (width - len(table.headers))
            rows.append({
                "row_index": row.row_index,
                "cells": [(cell, format_cell(cell, h)) for cell, h in zip(cells, headers)],
                "editable": is_owner(row, identity),
            })

    return render(request, "sheetrows/sheet.html", {
        "table": table,
        "rows": rows,
        "only_mine": only_mine,
        "script_url": script_url,
    })


# ==============================================================
# EDIT ONE ROW
# ==============================================================

@login_required
def edit_row(request, row_index):
    identity = request.user.email
    script_url = EditorSettings.for_user(request.user).effective_script_url

    if not script_url:
        messages.warning(request, "Set up the Google Apps Script URL before editing.")
        return redirect('editor_settings')

    try:
        table = load_table()
    except SheetError as e:
        logger.error("Error loading sheet data: %s", e)
        messages.error(request, LOAD_FAILED)
        return redirect('sheet')

    row = table.find_row(row_index)
    if row is None:
        raise Http404("Row not found")

    if not is_owner(row, identity):
        return HttpResponseForbidden("You can only edit rows with your email address")

    if request.method == "POST":
        # a failed save re-renders this bound form, so nothing typed is lost
        form = RowEditForm(table.headers, row, request.POST)
        if form.is_valid():
            data = form.row_data()
            data[0] = row.owner
            payload = {"scriptUrl": script_url, "rowIndex": row.row_index, "data": data}

            try:
                result = forward_update(payload, identity)
            except SheetError as e:
                error = e.message
            else:
                if result.get("success"):
                    messages.success(request, f"Row {row.row_index} saved.")
                    return redirect('sheet')
                error = result.get("error") or "Unknown error"

            logger.error("Save error on row %s: %s", row.row_index, error)
            messages.error(request, f"Save failed: {error}")
    else:
        form = RowEditForm(table.headers, row)

    return render(request, "sheetrows/edit_row.html", {"form": form, "row": row})


# ==============================================================
# SETTINGS
# ==============================================================

@login_required
def editor_settings(request):
    cfg = EditorSettings.for_user(request.user)

    if request.method == "POST":
        form = EditorSettingsForm(request.POST, instance=cfg)
        if form.is_valid():
            form.save()
            messages.success(request, "Script URL saved.")
            return redirect('editor_settings')
    else:
        form = EditorSettingsForm(instance=cfg)

    return render(request, "sheetrows/settings.html", {
        "form": form,
        "effective_script_url": cfg.effective_script_url,
        "script_source": APPS_SCRIPT_SOURCE,
        "setup_steps": SETUP_STEPS,
    })


# ==============================================================
# DOWNLOAD MY ROWS
# ==============================================================

@login_required
def download_rows(request):
    try:
        table = load_table(request.user.email)
    except SheetError as e:
        logger.error("Error loading sheet data: %s", e)
        messages.error(request, LOAD_FAILED)
        return redirect('sheet')

    response = HttpResponse(
        table_to_excel_bytes(table),
        content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
    response["Content-Disposition"] = 'attachment; filename="my_rows.xlsx"'
    return response


# ==============================================================
# UPDATE PROXY (JSON API)
# ==============================================================

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


def _with_cors(response):
    for k, v in CORS_HEADERS.items():
        response[k] = v
    return response


def _same_origin(request):
    origin = request.headers.get("Origin")
    if not origin:
        return True
    return urlsplit(origin).netloc == request.get_host()


def api_caller(request):
    """
    The user behind an API request, or None.

    A bearer token wins when the Authorization header is present. Without
    one, the session user counts only for same-origin requests, because
    the endpoint is exempt from CSRF checks.
    """
    token = bearer_token(request)
    if token is not None:
        return user_from_token(token)

    if request.user.is_authenticated and _same_origin(request):
        return request.user
    return None


@login_required
@require_http_methods(["GET"])
def api_token(request):
    return JsonResponse({
        "token": issue_token(request.user),
        "expires_in": settings.API_TOKEN_MAX_AGE,
    })


@csrf_exempt
@require_http_methods(["POST", "OPTIONS"])
def update_sheet(request):
    """
    POST {scriptUrl, rowIndex, data} -> the Apps Script's {success, error?}.

    400 missing fields, 401 no valid bearer token or session, 403 column A
    is not the caller's email, 500 when the script cannot be reached or
    answers with non-JSON.
    """
    if request.method == "OPTIONS":
        return _with_cors(HttpResponse(b""))

    try:
        user = api_caller(request)
        if user is None:
            raise AuthError()

        try:
            payload = json.loads(request.body or b"null")
        except ValueError:
            raise ValidationError("Request body must be valid JSON")

        result = forward_update(payload, user.email)

    except SheetError as e:
        return _with_cors(JsonResponse(e.as_response_body(), status=e.status_code))
    except Exception as e:
        logger.exception("Error: %s", e)
        err = UnknownError(str(e) or None)
        return _with_cors(JsonResponse(err.as_response_body(), status=err.status_code))

    return _with_cors(JsonResponse(result))
