import math
from dataclasses import asdict

from flask import Blueprint, current_app, jsonify, request

from models.portfolio import CoinMetadata
from utils.decorators import handle_api_errors

holdings_bp = Blueprint('holdings', __name__, url_prefix='/api/holdings')


def _service():
    return current_app.extensions['portfolio_service']


def _quantity(value):
    try:
        quantity = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid quantity: {value}")
    if not math.isfinite(quantity):
        raise ValueError(f"Invalid quantity: {value}")
    if quantity < 0:
        raise ValueError("Quantity cannot be negative")
    return quantity


@holdings_bp.route('', methods=['GET'])
def list_holdings():
    store = _service().holdings_store
    return jsonify(store.to_dict())


@holdings_bp.route('', methods=['POST'])
@handle_api_errors
def add_holding():
    payload = request.get_json(silent=True) or {}
    coin_id = str(payload.get('id') or '').strip().lower()
    if not coin_id:
        raise ValueError("Coin id is required")

    quantity = _quantity(payload.get('quantity', 0))
    metadata = CoinMetadata.from_dict(payload)

    service = _service()
    if service.holdings_store.exists(coin_id):
        return jsonify({'status': 'error', 'message': f"Coin {coin_id} already exists in the portfolio"}), 409
    if not service.holdings_store.add_coin(coin_id, quantity, metadata):
        return jsonify({'status': 'error', 'message': f"Failed to add {coin_id}"}), 400

    service.refresh_cache()
    return jsonify({'status': 'success', 'id': coin_id, 'metadata': asdict(metadata)}), 201


@holdings_bp.route('/<coin_id>', methods=['PUT'])
@handle_api_errors
def update_holding(coin_id):
    payload = request.get_json(silent=True) or {}
    service = _service()
    store = service.holdings_store

    if not store.exists(coin_id):
        return jsonify({'status': 'error', 'message': f"Coin {coin_id} does not exist in the portfolio"}), 404

    # Validate everything before touching the store
    quantity = _quantity(payload['quantity']) if 'quantity' in payload else None
    changes = CoinMetadata.clean(payload)
    if not changes.get('symbol', True) or not changes.get('name', True):
        raise ValueError("Symbol and name cannot be empty")

    if quantity is not None and not store.update_quantity(coin_id, quantity):
        return jsonify({'status': 'error', 'message': f"Failed to update {coin_id}"}), 400
    if changes and not store.update_metadata(coin_id, changes):
        return jsonify({'status': 'error', 'message': f"No metadata stored for {coin_id}"}), 404

    service.refresh_cache()
    return jsonify({'status': 'success', 'id': coin_id})


@holdings_bp.route('/<coin_id>', methods=['DELETE'])
@handle_api_errors
def delete_holding(coin_id):
    service = _service()
    if not service.holdings_store.delete_coin(coin_id):
        return jsonify({'status': 'error', 'message': f"Coin {coin_id} does not exist in the portfolio"}), 404

    service.refresh_cache()
    return jsonify({'status': 'success', 'id': coin_id})
