"""ドメインモデル共通の基底クラス。"""

from enum import StrEnum
from typing import TypeVar

from pydantic import BaseModel, ConfigDict


class KodamaBaseModel(BaseModel):
    """不変で、未定義のキーを拒否するモデル。設定ファイルの誤記はここで検出される。"""

    model_config = ConfigDict(extra="forbid", frozen=True)


E = TypeVar("E", bound=StrEnum)


def normalize_enum_value(v: object, enum_cls: type[E]) -> object:
    """文字列を enum_cls のメンバー値に大文字小文字を無視して揃える。

    一致するメンバーがない場合や str 以外は v をそのまま返し、
    判定は後続の Pydantic バリデーションに任せる。
    """
    if not isinstance(v, str):
        return v
    folded = v.strip().casefold()
    return next((m.value for m in enum_cls if m.value.casefold() == folded), v)
