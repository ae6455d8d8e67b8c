from pydantic import BaseModel


class IntakePayload(BaseModel):
    """Flat enquiry body POSTed to the intake webhook. Every field is a string, empty when unknown."""
    customer_name: str = ""
    company_name: str = ""
    email: str = ""
    phone: str = ""
    origin_port: str = ""
    destination_port: str = ""
    shipment_mode: str = ""
    container_type: str = ""
    commodity: str = ""
    gross_weight: str = ""
    weight_unit: str = ""
    pieces_quantity: str = ""
    shipper_name: str = ""
    shipper_address: str = ""
    consignee_name: str = ""
    consignee_address: str = ""
    preferred_date: str = ""
    incoterm: str = ""

    @classmethod
    def from_extraction(cls, extracted: dict) -> "IntakePayload":
        """Build a payload from an untrusted extraction reply; missing, null or falsy values become ""."""
        if not isinstance(extracted, dict):
            extracted = {}
        values = {}
        for name in cls.model_fields:
            value = extracted.get(name)
            values[name] = str(value) if value else ""
        return cls(**values)
