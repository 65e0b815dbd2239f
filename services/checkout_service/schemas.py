from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict


class Address(BaseModel):
    street: Optional[str] = None
    number: Optional[str] = None
    complement: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    cep: Optional[str] = None

    model_config = ConfigDict(coerce_numbers_to_str=True)


class CustomerInfo(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[Address] = None

    model_config = ConfigDict(coerce_numbers_to_str=True)


class CartItem(BaseModel):
    # price and quantity are untrusted; the checkout service re-parses them
    id: str
    name: str
    price: Union[int, float, str, None] = None
    quantity: Union[int, float, str, None] = None
    selected_size: Optional[str] = None
    selected_color: Optional[str] = None
    product_code: Optional[str] = None
    image_url: Union[str, List[str], None] = None

    model_config = ConfigDict(coerce_numbers_to_str=True)


class PreferenceRequest(BaseModel):
    cartItems: Optional[List[CartItem]] = None
    customerInfo: Optional[CustomerInfo] = None


class PreferenceResponse(BaseModel):
    redirectUrl: str
