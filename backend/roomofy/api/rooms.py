from flask import Blueprint, jsonify, request, current_app
from flask_login import current_user, login_required
from roomofy import db
from roomofy.main import admin_required
from roomofy.models import Room, RoomRating

rooms = Blueprint('rooms', __name__)

AC_CHOICES = ('AC', 'Non-AC')


def _parse_price(raw):
    if isinstance(raw, bool):
        return None
    try:
        price = int(raw)
    except (TypeError, ValueError):
        return None
    return price if price > 0 else None


def _required_text(data, key):
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()


def _visible_room_or_404(room_id):
    room = db.get_or_404(Room, room_id)
    if not room.is_visible and not (current_user.is_authenticated and current_user.is_admin):
        return None
    return room


@rooms.route('', methods=['GET'])
def list_rooms():
    query = Room.query
    if not (current_user.is_authenticated and current_user.is_admin):
        query = query.filter_by(is_visible=True)
    listings = query.order_by(Room.id.desc()).all()
    return jsonify({'rooms': [r.to_dict() for r in listings]})


@rooms.route('', methods=['POST'])
@admin_required
def create_room():
    data = request.get_json(silent=True) or {}
    title = _required_text(data, 'title')
    location = _required_text(data, 'location')
    ac = data.get('ac') or 'Non-AC'
    if not all([title, location, data.get('price')]):
        return jsonify({'error': 'Title, price and location are required'}), 400
    price = _parse_price(data.get('price'))
    if price is None:
        return jsonify({'error': 'Price must be a valid positive number'}), 400
    if ac not in AC_CHOICES:
        return jsonify({'error': 'ac must be AC or Non-AC'}), 400
    is_visible = data.get('is_visible', True)
    if not isinstance(is_visible, bool):
        return jsonify({'error': 'is_visible must be true or false'}), 400

    room = Room(
        title=title,
        price=price,
        ac=ac,
        location=location,
        description=data.get('description'),
        photo_url=data.get('photo_url'),
        is_visible=is_visible,
    )
    db.session.add(room)
    db.session.commit()
    current_app.logger.info(f"[room-create] room={room.id} by={current_user.id}")
    return jsonify({'message': 'Room successfully posted', 'room': room.to_dict()}), 201


@rooms.route('/<int:room_id>', methods=['PUT'])
@admin_required
def update_room(room_id):
    room = db.get_or_404(Room, room_id)
    data = request.get_json(silent=True) or {}
    for key in ('title', 'location'):
        if key in data:
            value = _required_text(data, key)
            if value is None:
                return jsonify({'error': f'{key.capitalize()} cannot be empty'}), 400
            setattr(room, key, value)
    if 'price' in data:
        price = _parse_price(data.get('price'))
        if price is None:
            return jsonify({'error': 'Price must be a valid positive number'}), 400
        room.price = price
    if 'ac' in data:
        if data['ac'] not in AC_CHOICES:
            return jsonify({'error': 'ac must be AC or Non-AC'}), 400
        room.ac = data['ac']
    if 'is_visible' in data:
        if not isinstance(data['is_visible'], bool):
            return jsonify({'error': 'is_visible must be true or false'}), 400
        room.is_visible = data['is_visible']
    for key in ('description', 'photo_url'):
        if key in data:
            setattr(room, key, data[key])
    db.session.add(room)
    db.session.commit()
    return jsonify({'message': 'Room updated successfully', 'room': room.to_dict()})


@rooms.route('/<int:room_id>/rate', methods=['POST'])
@login_required
def rate_room(room_id):
    """Record the caller's 1-5 rating; rating again replaces the old value."""
    room = _visible_room_or_404(room_id)
    if room is None:
        return jsonify({'error': 'Room not found'}), 404
    data = request.get_json(silent=True) or {}
    value = data.get('value')
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
        return jsonify({'error': 'Rating must be a whole number from 1 to 5'}), 400

    rating = RoomRating.query.filter_by(room_id=room.id, user_id=current_user.id).first()
    if rating is None:
        rating = RoomRating(room_id=room.id, user_id=current_user.id)
    rating.value = value
    db.session.add(rating)
    db.session.commit()
    return jsonify({'message': 'Rating saved', 'room': room.to_dict()})


@rooms.route('/<int:room_id>', methods=['DELETE'])
@admin_required
def delete_room(room_id):
    room = db.get_or_404(Room, room_id)
    RoomRating.query.filter_by(room_id=room.id).delete()
    db.session.delete(room)
    db.session.commit()
    return jsonify({'message': 'Room deleted successfully'})
