"""
Screen-specific instructions and quick suggestions of the help assistant.
"""
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class PageContext:
    role: str
    suggestions: Tuple[str, ...]

    def to_json(self):
        return {'role': self.role, 'suggestions': list(self.suggestions)}


DEFAULT_CONTEXT = PageContext(
    role="Eres un asistente útil para la aplicación de gestión de stock Jobuzetti. Ayuda al usuario a navegar por la app.",
    suggestions=("¿Qué puedo hacer en esta app?", "¿Cómo voy al inventario?"),
)

PAGE_CONTEXTS = {
    '/': PageContext(
        role=(
            "Estás en la pantalla de 'Inventario General'. Tu objetivo es ayudar al usuario a buscar productos, "
            "filtrar por línea (marca) y ordenar la grilla. Explica que pueden usar la barra de búsqueda o los "
            "desplegables. Si preguntan por stock, diles que los colores indican la disponibilidad."
        ),
        suggestions=(
            "¿Cómo busco un producto específico?",
            "¿Qué significan los colores del stock?",
            "¿Cómo filtro solo los de FORD?",
            "¿Cómo ordeno por precio?",
        ),
    ),
    '/ingreso': PageContext(
        role=(
            "Estás en la pantalla de 'Ingreso de Stock'. Ayuda al usuario a sumar cantidades al inventario "
            "existente. Explica que deben escribir el código, seleccionar la sugerencia y luego poner la "
            "cantidad a sumar."
        ),
        suggestions=(
            "¿Cómo cargo stock a un producto?",
            "No encuentro el código, ¿qué hago?",
            "¿Puedo restar stock desde acá?",
            "¿Se guarda automático?",
        ),
    ),
    '/nuevo-producto': PageContext(
        role=(
            "Estás en la pantalla de 'Nuevo Producto'. Ayuda al usuario a crear items individuales o usar la "
            "carga masiva CSV. Explica el formato del CSV si preguntan (CÓDIGO;NOMBRE;...)."
        ),
        suggestions=(
            "¿Cómo cargo un producto nuevo?",
            "¿Cuál es el formato para carga masiva?",
            "¿Qué hago si el producto ya existe?",
            "¿Cómo subo la imagen?",
        ),
    ),
    '/pedidos': PageContext(
        role=(
            "Estás en la pantalla de 'Pedidos / Remito'. Ayuda al usuario a armar un carrito para un cliente. "
            "Explica cómo buscar productos a la izquierda, agregarlos y luego poner el nombre del cliente para "
            "generar el PDF."
        ),
        suggestions=(
            "¿Cómo armo un pedido?",
            "¿Cómo elimino un item del carrito?",
            "¿El PDF descuenta stock?",
            "¿Dónde pongo el nombre del cliente?",
        ),
    ),
    '/precios': PageContext(
        role=(
            "Estás en la pantalla de 'Lista de Precios'. Ayuda a configurar aumentos, filtrar marcas y editar "
            "precios. Explica con cuidado la función de 'Actualizar BD' (Base de datos) vs el ajuste temporal."
        ),
        suggestions=(
            "¿Cómo aplico un aumento del 10%?",
            "¿Cómo edito un precio individual?",
            "¿Cómo genero el PDF?",
            "¿Qué hace el botón rojo de Actualizar BD?",
        ),
    ),
    '/exportacion': PageContext(
        role=(
            "Estás en la pantalla de 'Lista de Exportación (USD)'. Ayuda con los precios en dólares y la "
            "traducción al inglés. Explica que la traducción es automática pero editable."
        ),
        suggestions=(
            "¿Cómo cambio el precio a Dólares?",
            "¿Cómo corrijo la traducción?",
            "¿Cómo genero la lista en Inglés?",
            "¿Cómo filtro por marca?",
        ),
    ),
}


def get_page_context(route) -> PageContext:
    return PAGE_CONTEXTS.get(route) or DEFAULT_CONTEXT
