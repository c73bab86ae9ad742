# models.py

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, ValidationError, field_validator

from errors import FetchError


class _WireModel(BaseModel):
    """DeSo JSON objects: PascalCase aliases on the wire, snake_case in code."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @classmethod
    def from_json(cls, data: Any):
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise FetchError(f"{cls.__name__} does not match schema: {_describe(e)}") from e


def _describe(e: ValidationError) -> str:
    parts = []
    for err in e.errors()[:5]:
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


class Association(_WireModel):
    association_id: StrictStr = Field(alias="AssociationID")
    transactor_public_key: StrictStr = Field(alias="TransactorPublicKeyBase58Check")
    target_public_key: StrictStr = Field(alias="TargetUserPublicKeyBase58Check")
    app_public_key: StrictStr = Field(default="", alias="AppPublicKeyBase58Check")
    association_type: StrictStr = Field(alias="AssociationType")
    association_value: StrictStr = Field(default="", alias="AssociationValue")
    extra_data: Dict[str, StrictStr] = Field(default_factory=dict, alias="ExtraData")
    block_height: StrictInt = Field(default=0, alias="BlockHeight")

    @field_validator("extra_data", mode="before")
    @classmethod
    def null_extra_data(cls, v: Any) -> Any:
        return {} if v is None else v


class NFTEntry(_WireModel):
    owner_public_key: StrictStr = Field(alias="OwnerPublicKeyBase58Check")
    serial_number: StrictInt = Field(alias="SerialNumber")
    is_for_sale: StrictBool = Field(default=False, alias="IsForSale")
    min_bid_amount_nanos: StrictInt = Field(default=0, alias="MinBidAmountNanos")
    is_buy_now: StrictBool = Field(default=False, alias="IsBuyNow")
    buy_now_price_nanos: StrictInt = Field(default=0, alias="BuyNowPriceNanos")


class PostEntryResponse(_WireModel):
    post_hash_hex: StrictStr = Field(alias="PostHashHex")
    poster_public_key: StrictStr = Field(alias="PosterPublicKeyBase58Check")
    body: StrictStr = Field(default="", alias="Body")
    image_urls: Optional[List[StrictStr]] = Field(default=None, alias="ImageURLs")
    has_unlockable: StrictBool = Field(default=False, alias="HasUnlockable")
    extra_data: Dict[str, StrictStr] = Field(default_factory=dict, alias="PostExtraData")
    num_nft_copies: StrictInt = Field(default=0, alias="NumNFTCopies")
    timestamp_nanos: StrictInt = Field(default=0, alias="TimestampNanos")

    @field_validator("extra_data", mode="before")
    @classmethod
    def null_extra_data(cls, v: Any) -> Any:
        return {} if v is None else v


class NFTData(_WireModel):
    post: PostEntryResponse = Field(alias="PostEntryResponse")
    nft_entries: List[NFTEntry] = Field(default_factory=list, alias="NFTEntryResponses")

    @field_validator("nft_entries", mode="before")
    @classmethod
    def null_entries(cls, v: Any) -> Any:
        return [] if v is None else v


class AssociationsResponse(_WireModel):
    # required key; null means an empty result
    associations: Optional[List[Association]] = Field(alias="Associations")


class NFTsResponse(_WireModel):
    nfts: Optional[Dict[str, NFTData]] = Field(alias="NFTsMap")


def parse_associations(payload: Any) -> List[Association]:
    return AssociationsResponse.from_json(payload).associations or []


def parse_nfts_map(payload: Any) -> Dict[str, NFTData]:
    return NFTsResponse.from_json(payload).nfts or {}
