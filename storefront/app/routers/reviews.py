"""Product review endpoints."""
from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from ...data.models import User
from ...schemas.shop_models import ReviewIn
from ...services.reviews import ReviewService
from ..dependencies import ensure_owner_or_admin, get_current_user, get_review_service

router = APIRouter(prefix="/api", tags=["reviews"])


@router.post("/users/reviews/add/{product_id}")
def add_review(product_id: str, body: ReviewIn, user: User = Depends(get_current_user),
               reviews: ReviewService = Depends(get_review_service)):
    entry, updated = reviews.upsert(product_id, user.id, body.user_name or user.username,
                                    body.review, body.rating)
    message = "Review updated successfully" if updated else "Review added successfully"
    return JSONResponse(status_code=200 if updated else 201,
                        content=jsonable_encoder({"message": message, "review": entry}))


@router.get("/product/reviews/{product_id}")
def list_reviews(product_id: str, reviews: ReviewService = Depends(get_review_service)):
    return reviews.list_for_product(product_id)


@router.delete("/product/reviews/{product_id}/{user_id}")
def delete_review(product_id: str, user_id: str, caller: User = Depends(get_current_user),
                  reviews: ReviewService = Depends(get_review_service)):
    ensure_owner_or_admin(caller, user_id)
    remaining = reviews.delete(product_id, user_id)
    return {"message": "Review deleted successfully", "reviews": remaining}
