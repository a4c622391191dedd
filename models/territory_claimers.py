from datetime import datetime
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from extensions import db

class TerritoryClaim(db.Model):
    __tablename__ = 'territory_claims'
    id = db.Column(db.Integer, primary_key=True)
    h3_index = db.Column(db.String(16), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    log_count = db.Column(db.Integer, nullable=False, default=0)
    last_claimed_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    user = db.relationship('User', backref='territory_claims')

    __table_args__ = (db.UniqueConstraint('h3_index', 'user_id', name='_cell_user_claim_uc'),)


_UPSERT_DIALECTS = {
    'postgresql': pg_insert,
    'sqlite': sqlite_insert,
}


def upsert_territory_claim(h3_index, user_id):
    """
    Add one log to the (cell, user) claim, creating the row on first claim.

    Runs as a single INSERT ... ON CONFLICT DO UPDATE so concurrent callers
    never lose an increment.
    """
    dialect = db.engine.dialect.name
    if dialect not in _UPSERT_DIALECTS:
        raise NotImplementedError(f"Territory claims need an upsert capable database, got {dialect}")
    now = datetime.utcnow()
    stmt = _UPSERT_DIALECTS[dialect](TerritoryClaim).values(
        h3_index=h3_index,
        user_id=user_id,
        log_count=1,
        last_claimed_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=['h3_index', 'user_id'],
        set_={
            'log_count': TerritoryClaim.log_count + 1,
            'last_claimed_at': now,
        },
    )
    db.session.execute(stmt)
    db.session.commit()
