"""KodamaBaseModel と共通ユーティリティのテスト。"""

import pytest
from pydantic import ValidationError

from kodama.models._base import KodamaBaseModel, normalize_enum_value
from kodama.models.config import EchoMode


class SampleModel(KodamaBaseModel):
    """テスト用のサブクラス。"""

    name: str
    value: int


class TestKodamaBaseModel:
    """extra="forbid" / frozen=True の検証。"""

    def test_valid_fields_accepted(self) -> None:
        model = SampleModel(name="test", value=42)
        assert model.name == "test"
        assert model.value == 42

    def test_extra_field_rejected(self) -> None:
        """未定義フィールドを渡すと ValidationError が発生する。"""
        with pytest.raises(ValidationError, match="extra_forbidden"):
            SampleModel(name="test", value=42, unknown_field="x")  # type: ignore[call-arg]

    def test_field_assignment_rejected(self) -> None:
        """構築後のフィールド代入で ValidationError が発生する。"""
        model = SampleModel(name="test", value=42)
        with pytest.raises(ValidationError, match="frozen"):
            model.name = "changed"


class TestNormalizeEnumValue:
    """normalize_enum_value の動作を検証。"""

    def test_uppercase_normalized(self) -> None:
        assert normalize_enum_value("PLAIN", EchoMode) == "plain"

    def test_unknown_string_passed_through(self) -> None:
        assert normalize_enum_value("reverse", EchoMode) == "reverse"

    def test_non_string_passed_through(self) -> None:
        assert normalize_enum_value(42, EchoMode) == 42

    def test_enum_member_passed_through(self) -> None:
        """StrEnum メンバーは str のサブクラスなので値文字列に変換される。"""
        assert normalize_enum_value(EchoMode.ACCUMULATE, EchoMode) == "accumulate"
