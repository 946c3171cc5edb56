"""Unauthenticated statistics for the public nomadic site."""
from flask import Blueprint, jsonify
from ..services.public_stats_service import public_stats_service

bp = Blueprint('public', __name__, url_prefix='/api/public/nomadic')


@bp.route('/summary', methods=['GET'])
def get_summary():
    return jsonify({'success': True, 'data': public_stats_service.get_summary()})


@bp.route('/demographics', methods=['GET'])
def get_demographics():
    return jsonify({'success': True, 'data': public_stats_service.get_demographics()})


@bp.route('/skills', methods=['GET'])
def get_skills():
    return jsonify({'success': True, 'data': public_stats_service.get_skills()})


@bp.route('/barriers', methods=['GET'])
def get_barriers():
    return jsonify({'success': True, 'data': public_stats_service.get_barriers()})
