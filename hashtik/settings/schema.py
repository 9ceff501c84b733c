"""Saved settings templates.

A template is the full form state in three sections, stored under the
field names the web tool used (``userType``, ``codeLength``,
``usernamePositionX``, ...) so existing exports load unchanged:

    mikrotik    router-side fields (subsystem, version, profile, limits)
    credential  alphabet, password rule, lengths, prefixes, script delay
    print       grid, spacing and the four field placements

The background image is never persisted: it is dropped on save and
nulled on load.

Templates convert to the generator's ``GenerationRequest`` and the layout
engine's ``LayoutParameters`` (and back, via ``SettingsTemplate.from_models``).
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from hashtik.credentials.models import (
    MIN_CODE_LENGTH,
    CharacterClass,
    GenerationRequest,
    PasswordPolicy,
    VendorTarget,
)
from hashtik.layout.models import FieldPlacement, LayoutParameters

_MATCH_TO_POLICY = {
    "same": PasswordPolicy.SAME_AS_USERNAME,
    "different": PasswordPolicy.INDEPENDENT_RANDOM,
    "empty": PasswordPolicy.EMPTY,
}
_POLICY_TO_MATCH = {v: k for k, v in _MATCH_TO_POLICY.items()}

_CAMEL = ConfigDict(populate_by_name=True, extra="ignore")


# ============================================================================
# SECTIONS
# ============================================================================

class MikrotikSection(BaseModel):
    """Router-side fields."""
    model_config = _CAMEL

    user_type: str = Field("usermanager", alias="userType")
    mikrotik_version: str = Field("v7", alias="mikrotikVersion")
    customer: str = "admin"
    hotspot_server: str = Field("all", alias="hotspotServer")
    profile: str = "default"
    hotspot_limit: str = Field("", alias="hotspotLimit")
    hotspot_data_limit: str = Field("", alias="hotspotDataLimit")
    comment: str = ""
    location: str = ""

    @field_validator("user_type")
    @classmethod
    def validate_user_type(cls, v: str) -> str:
        if v not in ("usermanager", "hotspot"):
            raise ValueError(f"userType must be 'usermanager' or 'hotspot', got {v!r}")
        return v

    @field_validator("mikrotik_version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        if v not in ("v6", "v7"):
            raise ValueError(f"mikrotikVersion must be 'v6' or 'v7', got {v!r}")
        return v

    @property
    def vendor(self) -> VendorTarget:
        if self.user_type == "hotspot":
            return VendorTarget.HOTSPOT
        if self.mikrotik_version == "v6":
            return VendorTarget.USER_MANAGER_V6
        return VendorTarget.USER_MANAGER_V7


class CredentialSection(BaseModel):
    """Alphabet, password rule and batch size."""
    model_config = _CAMEL

    credential_type: CharacterClass = Field(CharacterClass.MIXED, alias="credentialType")
    credential_match: str = Field("different", alias="credentialMatch")
    code_length: int = Field(8, ge=MIN_CODE_LENGTH, alias="codeLength")
    account_count: int = Field(50, ge=1, alias="accountCount")
    prefix: str = ""
    suffix: str = ""
    pass_suffix: str = Field("", alias="passSuffix")
    script_delay: int = Field(100, ge=0, alias="scriptDelay")

    @field_validator("credential_match")
    @classmethod
    def validate_match(cls, v: str) -> str:
        if v not in _MATCH_TO_POLICY:
            raise ValueError(f"credentialMatch must be one of {sorted(_MATCH_TO_POLICY)}, got {v!r}")
        return v

    @property
    def password_policy(self) -> PasswordPolicy:
        return _MATCH_TO_POLICY[self.credential_match]


class PrintSection(BaseModel):
    """Grid and field placements (mm, pt, ``#rrggbb``)."""
    model_config = _CAMEL

    columns: int = Field(4, ge=1)
    rows: int = Field(18, ge=1)
    box_spacing: float = Field(2.0, ge=0.0, alias="boxSpacing")
    background_image: Optional[str] = Field(None, alias="backgroundImage")

    print_username: bool = Field(True, alias="printUsername")
    print_password: bool = Field(True, alias="printPassword")
    use_serial_number: bool = Field(False, alias="useSerialNumber")
    use_date_printing: bool = Field(False, alias="useDatePrinting")
    # Serial field on the card; older templates only carry useSerialNumber.
    print_serial: Optional[bool] = Field(None, alias="printSerial")

    username_size: float = Field(8.0, gt=0.0, alias="usernameSize")
    username_color: str = Field("#000000", alias="usernameColor")
    username_bold: bool = Field(False, alias="usernameBold")
    username_position_x: float = Field(5.0, alias="usernamePositionX")
    username_position_y: float = Field(5.0, alias="usernamePositionY")

    password_size: float = Field(8.0, gt=0.0, alias="passwordSize")
    password_color: str = Field("#000000", alias="passwordColor")
    password_bold: bool = Field(False, alias="passwordBold")
    password_position_x: float = Field(5.0, alias="passwordPositionX")
    password_position_y: float = Field(10.0, alias="passwordPositionY")

    serial_start_number: int = Field(1, ge=0, alias="serialStartNumber")
    serial_number_size: float = Field(6.0, gt=0.0, alias="serialNumberSize")
    serial_color: str = Field("#000000", alias="serialColor")
    serial_bold: bool = Field(False, alias="serialBold")
    serial_position_x: float = Field(20.0, alias="serialPositionX")
    serial_position_y: float = Field(5.0, alias="serialPositionY")

    date_size: float = Field(8.0, gt=0.0, alias="dateSize")
    date_color: str = Field("#000000", alias="dateColor")
    date_bold: bool = Field(False, alias="dateBold")
    date_position_x: float = Field(30.0, alias="datePositionX")
    date_position_y: float = Field(12.0, alias="datePositionY")

    @field_validator("background_image")
    @classmethod
    def drop_background(cls, v: Optional[str]) -> None:
        # Raster data is never round-tripped through storage.
        return None

    @model_validator(mode="after")
    def default_print_serial(self) -> PrintSection:
        if self.print_serial is None:
            self.print_serial = self.use_serial_number
        return self


# ============================================================================
# TEMPLATE
# ============================================================================

class SettingsTemplate(BaseModel):
    """One saved template: the three sections together."""
    model_config = _CAMEL

    mikrotik: MikrotikSection = Field(default_factory=MikrotikSection)
    credential: CredentialSection = Field(default_factory=CredentialSection)
    print_settings: PrintSection = Field(default_factory=PrintSection, alias="print")

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def to_generation_request(self, existing_usernames: Iterable[str] = ()) -> GenerationRequest:
        m, c, p = self.mikrotik, self.credential, self.print_settings
        return GenerationRequest(
            vendor=m.vendor,
            character_class=c.credential_type,
            password_policy=c.password_policy,
            code_length=c.code_length,
            account_count=c.account_count,
            prefix=c.prefix,
            suffix=c.suffix,
            password_suffix=c.pass_suffix,
            script_delay_ms=c.script_delay,
            customer=m.customer,
            hotspot_server=m.hotspot_server,
            profile=m.profile,
            uptime_limit=m.hotspot_limit,
            data_limit=m.hotspot_data_limit,
            comment=m.comment,
            location=m.location,
            use_serial_number=p.use_serial_number,
            serial_start_number=p.serial_start_number,
            existing_usernames=tuple(existing_usernames),
        )

    def to_layout_parameters(self, background_image: str | None = None) -> LayoutParameters:
        """Layout for this template; the background is supplied per session."""
        p = self.print_settings
        return LayoutParameters(
            columns=p.columns,
            rows=p.rows,
            box_spacing_mm=p.box_spacing,
            background_image=background_image,
            serial_start_number=p.serial_start_number,
            username=FieldPlacement(
                p.print_username, p.username_size, p.username_color, p.username_bold,
                p.username_position_x, p.username_position_y,
            ),
            password=FieldPlacement(
                p.print_password, p.password_size, p.password_color, p.password_bold,
                p.password_position_x, p.password_position_y,
            ),
            serial=FieldPlacement(
                bool(p.print_serial), p.serial_number_size, p.serial_color, p.serial_bold,
                p.serial_position_x, p.serial_position_y,
            ),
            date=FieldPlacement(
                p.use_date_printing, p.date_size, p.date_color, p.date_bold,
                p.date_position_x, p.date_position_y,
            ),
        )

    @classmethod
    def from_models(cls, request: GenerationRequest, params: LayoutParameters) -> SettingsTemplate:
        """Inverse of the two conversions above (existing users are not stored)."""
        vendor = VendorTarget(request.vendor)
        u, pw, s, d = params.username, params.password, params.serial, params.date
        return cls(
            mikrotik=MikrotikSection(
                user_type="hotspot" if vendor is VendorTarget.HOTSPOT else "usermanager",
                mikrotik_version="v6" if vendor is VendorTarget.USER_MANAGER_V6 else "v7",
                customer=request.customer,
                hotspot_server=request.hotspot_server,
                profile=request.profile,
                hotspot_limit=request.uptime_limit,
                hotspot_data_limit=request.data_limit,
                comment=request.comment,
                location=request.location,
            ),
            credential=CredentialSection(
                credential_type=CharacterClass(request.character_class),
                credential_match=_POLICY_TO_MATCH[PasswordPolicy(request.password_policy)],
                code_length=request.code_length,
                account_count=request.account_count,
                prefix=request.prefix,
                suffix=request.suffix,
                pass_suffix=request.password_suffix,
                script_delay=request.script_delay_ms,
            ),
            print_settings=PrintSection(
                columns=params.columns,
                rows=params.rows,
                box_spacing=params.box_spacing_mm,
                print_username=u.enabled,
                print_password=pw.enabled,
                use_serial_number=request.use_serial_number,
                print_serial=s.enabled,
                use_date_printing=d.enabled,
                username_size=u.font_size_pt, username_color=u.color, username_bold=u.bold,
                username_position_x=u.x_mm, username_position_y=u.y_mm,
                password_size=pw.font_size_pt, password_color=pw.color, password_bold=pw.bold,
                password_position_x=pw.x_mm, password_position_y=pw.y_mm,
                serial_start_number=params.serial_start_number,
                serial_number_size=s.font_size_pt, serial_color=s.color, serial_bold=s.bold,
                serial_position_x=s.x_mm, serial_position_y=s.y_mm,
                date_size=d.font_size_pt, date_color=d.color, date_bold=d.bold,
                date_position_x=d.x_mm, date_position_y=d.y_mm,
            ),
        )

    # ------------------------------------------------------------------
    # Storage form
    # ------------------------------------------------------------------

    def to_storage(self) -> Dict[str, Any]:
        """Plain dict under the stored field names, background omitted."""
        data = self.model_dump(mode="json", by_alias=True)
        data["print"].pop("backgroundImage", None)
        return data

    @classmethod
    def from_storage(cls, data: Dict[str, Any] | None) -> SettingsTemplate:
        """Parse a stored template; missing sections and keys take defaults.

        Raises
        ------
        pydantic.ValidationError
            If a stored value is out of range.
        """
        return cls.model_validate(data or {})
