from django import template

from calendario.utils.dinheiro import formatar_campo, formatar_reais

register = template.Library()


@register.filter
def reais(centavos):
    """{{ reserva.valor_total|reais }} -> R$ 1.234,56"""
    if centavos in (None, ""):
        return "-"
    return formatar_reais(int(centavos))


@register.filter
def campo_reais(centavos):
    if centavos in (None, ""):
        return ""
    return formatar_campo(int(centavos))


@register.filter
def get_item(d, key):
    try:
        return d.get(key)
    except AttributeError:
        return None
