"""
➡️ But : Personnaliser la documentation Swagger/OpenAPI.

custom_openapi(app) modifie le schéma généré par FastAPI pour documenter
les conventions de l'API (enveloppe de réponse, pagination, authentification).
"""

from fastapi.openapi.utils import get_openapi

def custom_openapi(app):
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=(
            "API StreamSurf : catalogue vidéo, réactions, vues, favoris et administration.\n\n"
            "### Conventions\n"
            "- Toutes les heures sont en UTC.\n"
            "- Réponses : `{success, message, data}`.\n"
            "- Pagination du catalogue : query params `page` & `limit`.\n"
            "- Authentification : header `Authorization: Bearer <token>`.\n"
        ),
        routes=app.routes,
    )
    app.openapi_schema = openapi_schema
    return app.openapi_schema
