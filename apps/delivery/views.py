from __future__ import annotations

from django.http import JsonResponse

from apps.accounts.auth import authenticate
from apps.accounts.models import Role
from apps.common.http import api_view, json_body

from . import availability, lifecycle, ratings
from .models import MenuItem, Order


def serialize_menu_item(item: MenuItem) -> dict:
    return {
        "id": str(item.id),
        "name": item.name,
        "price": float(item.price),
        "image": item.image,
        "description": item.description,
        "is_available": item.is_available,
        "rating_average": float(item.rating_average),
        "rating_count": item.rating_count,
        "created_at": item.created_at.isoformat(),
        "updated_at": item.updated_at.isoformat(),
    }


def serialize_order(order: Order, *, include_owner: bool = False, include_history: bool = False) -> dict:
    data = {
        "id": str(order.id),
        "code": order.short_code,
        "user_id": str(order.user_id),
        "status": order.status,
        "total_amount": float(order.total_amount),
        "customer_name": order.customer_name,
        "customer_phone": order.customer_phone,
        "customer_address": order.customer_address,
        "items": [
            {
                "item_id": line.item_ref,
                "name": line.name,
                "price": float(line.price),
                "quantity": line.quantity,
            }
            for line in order.items.all()
        ],
        "created_at": order.created_at.isoformat(),
        "updated_at": order.updated_at.isoformat(),
    }
    if include_owner:
        data["user"] = {
            "id": str(order.user.id),
            "username": order.user.username,
            "email": order.user.email,
        }
    if include_history:
        data["history"] = [
            {"status": ch.status, "source": ch.source, "at": ch.created_at.isoformat()}
            for ch in order.status_changes.all()
        ]
    return data


# Menu


@api_view(["GET", "POST"])
def menu_collection(request):
    if request.method == "GET":
        items = availability.list_menu()
        return JsonResponse({"success": True, "menu_items": [serialize_menu_item(i) for i in items]})
    principal = authenticate(request, Role.ADMINISTRATOR)
    item = availability.create_menu_item(principal, json_body(request))
    return JsonResponse({"success": True, "menu_item": serialize_menu_item(item)}, status=201)


@api_view(["GET", "PATCH", "DELETE"])
def menu_detail(request, item_id):
    if request.method == "GET":
        item = availability.get_menu_item(item_id)
        return JsonResponse({"success": True, "menu_item": serialize_menu_item(item)})
    principal = authenticate(request, Role.ADMINISTRATOR)
    if request.method == "DELETE":
        availability.delete_menu_item(principal, item_id)
        return JsonResponse({"success": True})
    item, cancelled = availability.update_menu_item(principal, item_id, json_body(request))
    return JsonResponse({
        "success": True,
        "menu_item": serialize_menu_item(item),
        "cancelled_orders": [str(o.id) for o in cancelled],
    })


# Orders


@api_view(["GET", "POST"])
def order_collection(request):
    principal = authenticate(request)
    if request.method == "GET":
        orders = lifecycle.list_orders(principal)
        return JsonResponse({
            "success": True,
            "orders": [serialize_order(o, include_owner=principal.is_admin) for o in orders],
        })
    data = json_body(request)
    order = lifecycle.create_order(
        principal,
        items=data.get("items"),
        customer_name=data.get("customer_name"),
        customer_phone=data.get("customer_phone"),
        customer_address=data.get("customer_address"),
    )
    return JsonResponse({"success": True, "order": serialize_order(order)}, status=201)


@api_view(["GET", "PATCH", "DELETE"])
def order_detail(request, order_id):
    principal = authenticate(request)
    if request.method == "GET":
        order = lifecycle.get_order(principal, order_id)
        return JsonResponse({
            "success": True,
            "order": serialize_order(order, include_owner=principal.is_admin, include_history=True),
        })
    if request.method == "DELETE":
        lifecycle.delete_order(principal, order_id)
        return JsonResponse({"success": True})
    data = json_body(request)
    order = lifecycle.transition_order(principal, order_id, data.get("status"))
    return JsonResponse({"success": True, "order": serialize_order(order)})


@api_view(["POST"])
def order_cancel(request, order_id):
    principal = authenticate(request)
    order = lifecycle.cancel_order(principal, order_id)
    return JsonResponse({"success": True, "order": serialize_order(order)})


# Ratings


@api_view(["POST"])
def rating_submit(request):
    principal = authenticate(request)
    data = json_body(request)
    result = ratings.submit_rating(principal, data.get("menu_item_id"), data.get("rating"))
    return JsonResponse({
        "success": True,
        "rating": float(result["rating"]),
        "rating_count": result["rating_count"],
    })
