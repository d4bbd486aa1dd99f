from flask import Blueprint, request, jsonify, g

from domain import bookings, reviews
from utils.audit import log_event
from utils.auth_context import login_required

review_bp = Blueprint("reviews", __name__)


@review_bp.post("/reviews")
@login_required
def create_review():
    review = reviews.create_review(g.user.id, request.get_json(silent=True) or {})
    log_event(
        "REVIEW_CREATE",
        user_id=g.user.id,
        entity="review",
        entity_id=review.id,
        metadata={"booking_id": review.booking_id, "rating": str(review.rating)},
    )
    return jsonify(reviews.serialize_review(review)), 201


@review_bp.patch("/reviews/<int:review_id>")
@login_required
def update_review(review_id: int):
    review = reviews.update_review(review_id, g.user.id, request.get_json(silent=True) or {})
    log_event("REVIEW_UPDATE", user_id=g.user.id, entity="review", entity_id=review.id)
    return jsonify(reviews.serialize_review(review)), 200


@review_bp.delete("/reviews/<int:review_id>")
@login_required
def delete_review(review_id: int):
    reviews.delete_review(review_id, g.user.id)
    log_event("REVIEW_DELETE", user_id=g.user.id, entity="review", entity_id=review_id)
    return jsonify(message="Review deleted"), 200


@review_bp.get("/reviews/me")
@login_required
def my_reviews():
    return jsonify([reviews.serialize_review(r) for r in reviews.list_for_customer(g.user.id)]), 200


@review_bp.get("/bookings/<int:booking_id>/review")
@login_required
def booking_review(booking_id: int):
    bookings.get_booking(booking_id)
    review = reviews.get_review_for_booking(booking_id)
    return jsonify(review=reviews.serialize_review(review) if review else None), 200
