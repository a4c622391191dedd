import threading
from extensions import db
from models.hexgrid import coord_to_cell
from models.loggers import claims_logger
from models import territory_claimers


def record_territory_claim(lat, lng, user_id):
    """Claim the cell under (lat, lng) for the user. Errors are logged, never raised."""
    try:
        h3_index = coord_to_cell(lat, lng)
        territory_claimers.upsert_territory_claim(h3_index, user_id)
    except Exception:
        db.session.rollback()
        claims_logger.exception(f"Territory claim failed for user {user_id} at ({lat}, {lng})")
        return False
    claims_logger.info(f"User {user_id} claimed {h3_index}")
    return True


def territory_claim_task(app, lat, lng, user_id):
    with app.app_context():
        record_territory_claim(lat, lng, user_id)


def dispatch_territory_claim(app, lat, lng, user_id):
    """
    Fire-and-forget claim after a location log is written. Returns the worker
    thread, or None when TERRITORY_CLAIMS_ASYNC is off and the claim ran inline.
    """
    if not app.config.get('TERRITORY_CLAIMS_ASYNC', True):
        record_territory_claim(lat, lng, user_id)
        return None
    t = threading.Thread(target=territory_claim_task, args=(app, lat, lng, user_id), daemon=True)
    t.start()
    return t
