"""Prometheus scrape endpoint."""
from flask import Blueprint, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from stockorders.metrics import registry

metrics_bp = Blueprint('metrics', __name__)


@metrics_bp.route('/metrics')
def metrics():
    """
    Prometheus metrics endpoint.

    Not authenticated: restrict it at the network level in production.
    """
    return Response(generate_latest(registry), mimetype=CONTENT_TYPE_LATEST)
