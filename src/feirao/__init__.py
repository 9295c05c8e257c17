"""
Motor de promoción y descubrimiento de anuncios del Feirão da Orca.

- discovery: filtros, ranking por plan y búsqueda
- promotion: ventanas de boost, presencia en vivo y sweep
- moderation: denuncias
"""
