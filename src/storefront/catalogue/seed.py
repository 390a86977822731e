"""Starter catalogue loaded by ``storefront-manage seed``."""

from datetime import UTC, datetime

import structlog
from protean import UnitOfWork
from protean.utils.globals import current_domain

from storefront.catalogue.category import Category
from storefront.catalogue.product import Product

logger = structlog.get_logger(__name__)

_IMG = "https://images.unsplash.com/photo-{}?w=400"

ELECTRONICS = "a1b2c3d4-e5f6-7890-abcd-ef1234567890"
CLOTHING = "b2c3d4e5-f6a7-8901-bcde-f12345678901"
HOME = "c3d4e5f6-a7b8-9012-cdef-123456789012"
SPORTS = "d4e5f6a7-b8c9-0123-def0-234567890123"
BOOKS = "e5f6a7b8-c9d0-1234-ef01-345678901234"

CATEGORIES = [
    (ELECTRONICS, "Electrónica", "Dispositivos electrónicos y gadgets", "1498049794561-7780e7231661"),
    (CLOTHING, "Ropa", "Moda y accesorios", "1445205170230-053b83016050"),
    (HOME, "Hogar", "Artículos para el hogar", "1484101403633-562f891dc89a"),
    (SPORTS, "Deportes", "Equipamiento deportivo", "1461896836934-ffe607ba8211"),
    (BOOKS, "Libros", "Literatura y educación", "1512820790803-83ca734da794"),
]

# name, description, price, stock, image, category, featured
PRODUCTS = [
    ("Smartphone Pro X", "Teléfono inteligente de última generación con cámara de 108MP", "899.99", 50,
     "1511707171634-5f897ff02aa9", ELECTRONICS, True),
    ("Laptop UltraBook", "Portátil ultraligero con procesador de última generación", "1299.99", 30,
     "1496181133206-80ce9b88a853", ELECTRONICS, True),
    ("Auriculares Wireless", "Auriculares inalámbricos con cancelación de ruido", "199.99", 100,
     "1505740420928-5e560c06d30e", ELECTRONICS, False),
    ("Smartwatch Elite", "Reloj inteligente con monitor de salud avanzado", "349.99", 75,
     "1523275335684-37898b6baf30", ELECTRONICS, True),
    ("Tablet Pro 12", "Tablet profesional con stylus incluido", "799.99", 40,
     "1544244015-0df4b3ffc6b0", ELECTRONICS, False),
    ("Chaqueta Premium", "Chaqueta de cuero genuino estilo urbano", "189.99", 60,
     "1551028719-00167b16eac5", CLOTHING, True),
    ("Zapatillas Sport", "Zapatillas deportivas de alto rendimiento", "129.99", 120,
     "1542291026-7eec264c27ff", CLOTHING, False),
    ("Camisa Elegante", "Camisa de algodón premium para ocasiones formales", "79.99", 80,
     "1602810318383-e386cc2a3ccf", CLOTHING, False),
    ("Lámpara Moderna", "Lámpara de diseño minimalista LED", "89.99", 45,
     "1507473885765-e6ed057f782c", HOME, True),
    ("Sofá Confort", "Sofá de 3 plazas con tejido premium", "699.99", 15,
     "1555041469-a586c61ea9bc", HOME, True),
    ("Bicicleta Mountain", "Bicicleta de montaña profesional", "549.99", 25,
     "1485965120184-e220f721d03e", SPORTS, True),
    ("Mancuernas Set", "Set de mancuernas ajustables 5-25kg", "149.99", 35,
     "1534438327276-14e5300c3a48", SPORTS, False),
    ("Yoga Mat Premium", "Esterilla de yoga antideslizante ecológica", "49.99", 90,
     "1601925260368-ae2f83cf8b7f", SPORTS, False),
    ("Best Seller Novel", "La novela más vendida del año", "24.99", 200,
     "1544947950-fa07a98d237f", BOOKS, True),
    ("Guía de Programación", "Manual completo de desarrollo web moderno", "59.99", 70,
     "1532012197267-da84d127e765", BOOKS, False),
]


def load_seed_catalogue() -> int:
    """Insert the starter categories and products into an empty catalogue.

    Returns the number of products created; zero when products already exist.
    """
    product_repo = current_domain.repository_for(Product)
    if product_repo.query.all().total:
        logger.info("Catalogue already populated, skipping seed")
        return 0

    category_repo = current_domain.repository_for(Category)
    now = datetime.now(UTC)
    with UnitOfWork():
        for category_id, name, description, image in CATEGORIES:
            if category_repo.get_or_none(category_id) is None:
                category_repo.add(
                    Category(
                        id=category_id,
                        name=name,
                        description=description,
                        image_url=_IMG.format(image),
                        created_at=now,
                        updated_at=now,
                    )
                )

        for name, description, price, stock, image, category_id, featured in PRODUCTS:
            product_repo.add(
                Product.create(
                    name=name,
                    description=description,
                    price=price,
                    stock=stock,
                    image_url=_IMG.format(image),
                    category_id=category_id,
                    featured=featured,
                )
            )

    logger.info("Starter catalogue loaded", categories=len(CATEGORIES), products=len(PRODUCTS))
    return len(PRODUCTS)
