from flask import Blueprint, Response, jsonify, request, current_app, session
from flask_login import login_required, current_user, login_user, logout_user
from flask_wtf.csrf import generate_csrf
from datetime import datetime
from extensions import db, limiter
from models.user import User
from models.movement import MovementLog
from models.location import LocationLog, LocationRating, LocationComment
from models.notification import Notification
from models.forms import LoginForm, MovementForm, LocationForm, PlaceNameForm, RatingForm, CommentForm
from models.constants import (
    SOMEONE_NAME, DEFAULT_BATHROOM_RADIUS, MAX_BATHROOM_RADIUS, NOTIFICATION_PAGE_SIZE
)
from models.utils import json_error, load_form, form_error, premium_required, send_notification, average_rating
from models.background_tasks import dispatch_territory_claim
from models.territory import parse_bounds, territories_in_bounds, InvalidBounds, TooManyCells
from models import overpass
from models.export import movements_to_csv, CSV_FILENAME

api_bp = Blueprint('api', __name__, url_prefix='/api')


# --- Auth ---

@api_bp.route('/auth/csrf-token')
def csrf_token():
    return jsonify(csrfToken=generate_csrf())


@api_bp.route('/auth/login', methods=['POST'])
@limiter.limit("20 per minute")
def login():
    form = load_form(LoginForm)
    if not form.validate_on_submit():
        return json_error(form_error(form), 400)
    user = User.query.filter_by(username=form.username.data).first()
    if not user or not user.check_password(form.password.data):
        return json_error("Invalid username or password.", 401)
    login_user(user)
    session.permanent = True
    user.last_seen = datetime.utcnow()
    db.session.commit()
    return jsonify(user=user.to_dict())


@api_bp.route('/auth/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify(success=True)


# --- Territories ---

@api_bp.route('/territories')
@limiter.limit("60 per minute")
@login_required
def territories():
    try:
        bounds = parse_bounds(request.args.get('bounds'))
        result = territories_in_bounds(bounds)
    except InvalidBounds as e:
        return json_error(str(e), 400)
    except TooManyCells as e:
        return json_error(str(e), 422, cellCount=e.cell_count, maxCells=e.max_cells)
    return jsonify(territories=result, currentUserId=current_user.id)


# --- Movements ---

@api_bp.route('/movements', methods=['GET'])
@login_required
def list_movements():
    logs = (MovementLog.query.filter_by(user_id=current_user.id)
            .order_by(MovementLog.logged_at.desc(), MovementLog.id.desc()).all())
    return jsonify(movements=[m.to_dict() for m in logs])


@api_bp.route('/movements', methods=['POST'])
@limiter.limit("30 per minute")
@login_required
def create_movement():
    form = load_form(MovementForm)
    if not form.validate_on_submit():
        return json_error(form_error(form), 400)
    log = MovementLog(
        user_id=current_user.id,
        bristol_type=form.bristol_type.data,
        pre_weight=form.pre_weight.data,
        post_weight=form.post_weight.data,
        weight_unit=form.weight_unit.data,
    )
    db.session.add(log)
    db.session.commit()
    return jsonify(success=True, data=log.to_dict())


# --- Locations ---

def _get_location(location_id):
    return db.session.get(LocationLog, location_id)


@api_bp.route('/locations', methods=['GET'])
@login_required
def list_locations():
    locations = (LocationLog.query.filter_by(user_id=current_user.id)
                 .order_by(LocationLog.created_at.desc(), LocationLog.id.desc()).all())
    return jsonify(locations=[loc.to_dict() for loc in locations])


@api_bp.route('/locations', methods=['POST'])
@limiter.limit("30 per minute")
@login_required
def create_location():
    form = load_form(LocationForm)
    if not form.validate_on_submit():
        return json_error(form_error(form), 400)
    movement = db.session.get(MovementLog, form.movement_log_id.data)
    if not movement or movement.user_id != current_user.id:
        return json_error("Movement log not found", 404)

    location = LocationLog(
        movement_log_id=movement.id,
        user_id=current_user.id,
        latitude=form.latitude.data,
        longitude=form.longitude.data,
        place_name=form.place_name.data,
    )
    db.session.add(location)
    db.session.commit()
    payload = location.to_dict()

    dispatch_territory_claim(current_app._get_current_object(),
                             location.latitude, location.longitude, current_user.id)
    return jsonify(location=payload)


@api_bp.route('/locations/<int:location_id>', methods=['PATCH'])
@login_required
def update_location(location_id):
    location = _get_location(location_id)
    if not location or location.user_id != current_user.id:
        return json_error("Location not found", 404)
    form = load_form(PlaceNameForm)
    if not form.validate_on_submit():
        return json_error(form_error(form), 400)
    location.place_name = form.place_name.data
    db.session.commit()
    return jsonify(location=location.to_dict())


@api_bp.route('/locations/nearby-bathrooms')
@limiter.limit("30 per minute")
@login_required
def nearby_bathrooms():
    try:
        lat = float(request.args.get('lat', ''))
        lng = float(request.args.get('lng', ''))
    except ValueError:
        return json_error("lat and lng query parameters are required", 400)
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return json_error("lat and lng query parameters are required", 400)
    try:
        radius = int(request.args.get('radius', DEFAULT_BATHROOM_RADIUS))
    except ValueError:
        return json_error("radius must be an integer number of meters", 400)
    if radius < 1 or radius > MAX_BATHROOM_RADIUS:
        return json_error(f"radius must be between 1 and {MAX_BATHROOM_RADIUS} meters", 400)

    try:
        bathrooms = overpass.nearby_bathrooms(
            lat, lng, radius,
            url=current_app.config['OVERPASS_URL'],
            ttl=current_app.config['BATHROOM_CACHE_TTL'],
        )
    except overpass.OverpassError:
        current_app.logger.exception("Overpass lookup failed")
        return json_error("Failed to fetch nearby bathrooms", 502)
    return jsonify(bathrooms=bathrooms)


# --- Ratings ---

def _rating_summary(location_id, user_rating):
    ratings = LocationRating.query.filter_by(location_log_id=location_id).all()
    average, count = average_rating(ratings)
    return jsonify(average=average, count=count, userRating=user_rating)


@api_bp.route('/locations/<int:location_id>/ratings', methods=['GET'])
@login_required
def get_ratings(location_id):
    if not _get_location(location_id):
        return json_error("Location not found", 404)
    own = LocationRating.query.filter_by(location_log_id=location_id, user_id=current_user.id).first()
    return _rating_summary(location_id, own.rating if own else None)


@api_bp.route('/locations/<int:location_id>/ratings', methods=['POST'])
@limiter.limit("30 per minute")
@login_required
def rate_location(location_id):
    if not _get_location(location_id):
        return json_error("Location not found", 404)
    form = load_form(RatingForm)
    if not form.validate_on_submit():
        return json_error(form_error(form), 400)
    own = LocationRating.query.filter_by(location_log_id=location_id, user_id=current_user.id).first()
    if own:
        own.rating = form.rating.data
    else:
        db.session.add(LocationRating(location_log_id=location_id, user_id=current_user.id,
                                      rating=form.rating.data))
    db.session.commit()
    return _rating_summary(location_id, form.rating.data)


# --- Comments ---

@api_bp.route('/locations/<int:location_id>/comments', methods=['GET'])
@login_required
@premium_required
def get_comments(location_id):
    if not _get_location(location_id):
        return json_error("Location not found", 404)
    comments = (LocationComment.query.filter_by(location_log_id=location_id)
                .order_by(LocationComment.created_at.asc(), LocationComment.id.asc()).all())
    return jsonify(comments=[c.to_dict() for c in comments])


@api_bp.route('/locations/<int:location_id>/comments', methods=['POST'])
@limiter.limit("20 per minute")
@login_required
@premium_required
def add_comment(location_id):
    location = _get_location(location_id)
    if not location:
        return json_error("Location not found", 404)
    form = load_form(CommentForm)
    if not form.validate_on_submit():
        return json_error(form_error(form), 400)
    comment = LocationComment(location_log_id=location.id, user_id=current_user.id, body=form.body.data)
    db.session.add(comment)
    db.session.commit()

    if location.user_id != current_user.id:
        commenter = current_user.display_name or current_user.username or SOMEONE_NAME
        place = location.place_name or "a location"
        send_notification(
            location.user_id,
            f"{commenter} commented on your poop at {place}",
            notif_type='comment',
            actor_id=current_user.id,
            reference_id=location.id,
        )
    return jsonify(comment=comment.to_dict())


# --- Notifications ---

@api_bp.route('/notifications')
@login_required
def notifications():
    notifs = (Notification.query.filter_by(user_id=current_user.id)
              .order_by(Notification.timestamp.desc(), Notification.id.desc())
              .limit(NOTIFICATION_PAGE_SIZE).all())
    return jsonify(notifications=[n.to_dict() for n in notifs])


# --- Export ---

@api_bp.route('/export')
@limiter.limit("10 per minute")
@login_required
def export_movements():
    fmt = request.args.get('format', 'csv')
    if fmt != 'csv':
        return json_error("Unsupported export format. Use format=csv.", 400)
    logs = (MovementLog.query.filter_by(user_id=current_user.id)
            .order_by(MovementLog.logged_at.desc(), MovementLog.id.desc()).all())
    return Response(
        movements_to_csv(logs),
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename="{CSV_FILENAME}"'},
    )
