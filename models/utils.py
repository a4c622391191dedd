import math
from functools import wraps
from flask import request, jsonify
from flask_login import current_user
from werkzeug.datastructures import ImmutableMultiDict
from extensions import db
from models.notification import Notification


def json_error(message, status, **extra):
    payload = {'error': message}
    payload.update(extra)
    return jsonify(payload), status


def load_form(form_cls):
    """
    Build a form from the JSON body. Scalars are passed as strings so the
    fields coerce them the same way they coerce posted form data; nulls and
    nested values count as missing.
    """
    if not request.is_json:
        return form_cls()
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    formdata = ImmutableMultiDict({
        key: str(value)
        for key, value in payload.items()
        if isinstance(value, (str, int, float)) and not isinstance(value, bool)
    })
    return form_cls(formdata=formdata)


def form_error(form):
    for errors in form.errors.values():
        if errors:
            return errors[0]
    return "Invalid request"


def premium_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated or not current_user.has_premium():
            return json_error("Premium required", 403)
        return f(*args, **kwargs)
    return decorated_function


def send_notification(user_id, message, notif_type, actor_id=None, reference_id=None):
    notif = Notification(user_id=user_id, actor_id=actor_id, type=notif_type,
                         reference_id=reference_id, message=message)
    db.session.add(notif)
    db.session.commit()
    return notif


def average_rating(ratings):
    count = len(ratings)
    average = sum(r.rating for r in ratings) / count if count else 0
    return math.floor(average * 10 + 0.5) / 10, count
