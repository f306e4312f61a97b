from typing import Optional, Tuple

# (courier, service) attendus par l'API transporteur
COUNTRY_DEFAULT_COURIERS = {
    "GR": ("SpeedX", "address"),
    "RO": ("FAN", "address"),
}


def map_courier_service(
    courier_code: Optional[str],
    shipping_method: Optional[str],
    country: Optional[str],
) -> Tuple[str, str]:
    """Traduit la méthode de livraison de la boutique en couple (courier, service)."""
    code = (courier_code or "").upper()
    method = (shipping_method or "").lower()
    country = (country or "BG").upper()

    if country in COUNTRY_DEFAULT_COURIERS:
        return COUNTRY_DEFAULT_COURIERS[country]
    if code == "SAMEDAY" or "sameday" in method or "easybox" in method:
        return "Sameday", "easybox"
    if code == "ECONT" or "econt" in method:
        return "Econt", "office" if "office" in method else "address"
    return "Econt", "address"
