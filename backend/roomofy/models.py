from datetime import datetime, timezone

from flask_login import UserMixin

from roomofy import db, bcrypt


def _utcnow():
    return datetime.now(timezone.utc)


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    mobile = db.Column(db.String(32), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(128), nullable=False)
    is_admin = db.Column(db.Boolean, default=False, nullable=False)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'mobile': self.mobile,
            'is_admin': self.is_admin,
        }


class Room(db.Model):
    __tablename__ = 'room'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(128), nullable=False)
    price = db.Column(db.Integer, nullable=False)
    ac = db.Column(db.String(16), default='Non-AC', nullable=False)  # AC, Non-AC
    location = db.Column(db.String(128), nullable=False)
    description = db.Column(db.Text, nullable=True)
    photo_url = db.Column(db.String(512), nullable=True)
    is_visible = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    def rating_summary(self):
        average, count = (
            db.session.query(db.func.avg(RoomRating.value), db.func.count(RoomRating.id))
            .filter(RoomRating.room_id == self.id)
            .one()
        )
        return (round(float(average), 2) if average is not None else None), int(count or 0)

    def to_dict(self):
        average, count = self.rating_summary()
        return {
            'id': self.id,
            'title': self.title,
            'price': self.price,
            'ac': self.ac,
            'location': self.location,
            'description': self.description,
            'photo_url': self.photo_url,
            'is_visible': self.is_visible,
            'rating_average': average,
            'rating_count': count,
        }


class RoomRating(db.Model):
    """One user's 1-5 score for a room."""
    __tablename__ = 'room_rating'
    __table_args__ = (db.UniqueConstraint('room_id', 'user_id', name='uq_room_rating_room_user'),)
    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey('room.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    value = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)


class WalletAccount(db.Model):
    """Balance holder for one game identity. Never deleted."""
    __tablename__ = 'wallet_account'
    id = db.Column(db.String(64), primary_key=True)
    balance = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)


class WalletTransaction(db.Model):
    __tablename__ = 'wallet_transaction'
    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.String(64), db.ForeignKey('wallet_account.id'), nullable=False, index=True)
    direction = db.Column(db.String(8), nullable=False)  # credit, debit
    amount = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(255), nullable=False, default='')
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    @property
    def signed_amount(self):
        return self.amount if self.direction == 'credit' else -self.amount

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.direction,
            'amount': self.amount,
            'reason': self.reason,
            'timestamp': self.created_at.isoformat() if self.created_at else None,
        }
