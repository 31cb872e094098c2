from django.http import JsonResponse

from apps.accounts.auth import authenticate
from apps.accounts.models import Role
from apps.common.http import api_view, json_body

from . import services
from .models import GalleryPhoto


def serialize_photo(photo: GalleryPhoto) -> dict:
    return {
        "id": str(photo.id),
        "url": photo.url,
        "title": photo.title,
        "created_at": photo.created_at.isoformat(),
    }


@api_view(["GET", "POST"])
def gallery_collection(request):
    if request.method == "GET":
        return JsonResponse({"success": True, "photos": [serialize_photo(p) for p in services.list_photos()]})
    principal = authenticate(request, Role.ADMINISTRATOR)
    data = json_body(request)
    photo = services.add_photo(principal, data.get("url"), data.get("title"))
    return JsonResponse({"success": True, "photo": serialize_photo(photo)}, status=201)


@api_view(["POST"])
def gallery_upload(request):
    principal = authenticate(request, Role.ADMINISTRATOR)
    photo = services.upload_photo(principal, request.FILES.get("file"), request.POST.get("title") or "")
    return JsonResponse({"success": True, "photo": serialize_photo(photo)}, status=201)


@api_view(["DELETE"])
def gallery_detail(request, photo_id):
    principal = authenticate(request, Role.ADMINISTRATOR)
    services.delete_photo(principal, photo_id)
    return JsonResponse({"success": True})
