"""ドメイン層の共通定数定義"""

from typing import Dict, FrozenSet, List

# 曜日
WEEKDAYS: List[str] = ["月", "火", "水", "木", "金"]
WEEKDAY_SET: FrozenSet[str] = frozenset(WEEKDAYS)

# 設定ファイルで受け付ける曜日表記
WEEKDAY_ALIASES: Dict[str, str] = {
    "月曜": "月", "月曜日": "月", "mon": "月", "monday": "月",
    "火曜": "火", "火曜日": "火", "tue": "火", "tuesday": "火",
    "水曜": "水", "水曜日": "水", "wed": "水", "wednesday": "水",
    "木曜": "木", "木曜日": "木", "thu": "木", "thursday": "木",
    "金曜": "金", "金曜日": "金", "fri": "金", "friday": "金",
}

DEFAULT_PERIODS_PER_DAY = 6

# 午前とみなす最終校時
MORNING_LAST_PERIOD = 4
# 配置の基準となる中央の校時
PREFERRED_CENTER_PERIOD = 3

# 教員の週当たり担当時数上限（未設定時）
DEFAULT_TEACHER_MAX_WEEKLY_HOURS = 25
# 1コマあたりの教員数上限（協力授業、未設定時）
DEFAULT_MAX_TEACHERS_PER_SLOT = 2

# 「全教科」を表す指定
ALL_SUBJECTS = "all"


class PlacementPriority:
    """通常配置の優先度計算に使う重み"""
    TEACHER_SCARCITY_BASE = 10
    TEACHER_SCARCITY_WEIGHT = 10
    SPACE_LIMITED_BONUS = 20
    CO_TEACHING_SUBJECT_BONUS = 15
    WEEKLY_HOURS_WEIGHT = 2
    CORE_CATEGORY_BONUS = 5
    CO_TEACHING_MAIN_TEACHER_BONUS = 1000
    BLOCK_PERIOD_TEACHER_BONUS = 500
    JITTER = 0.1
    # 配置失敗時の優先度減衰 (固定分 + 乱数分)
    RETRY_DECAY_BASE = 500
    RETRY_DECAY_RANDOM = 1000


# 違反メッセージのテンプレート
ERROR_MESSAGES = {
    'TEACHER_CONFLICT': '{teacher}先生が{time_slot}に{count}クラスを同時に担当しています',
    'TEACHER_UNAVAILABLE': '{teacher}先生は{time_slot}に授業できません',
    'TEACHER_FORBIDDEN_CLASS': '{teacher}先生は{class_ref}の授業を担当できません（{hours}時間配置）',
    'CLASS_HOURS_EXCEEDED': '{teacher}先生の{class_ref}での時数が上限を超えています（{hours}/{cap}）',
    'TEACHER_TOTAL_EXCEEDED': '{teacher}先生の週当たり時数が上限を超えています（{hours}/{cap}）',
    'TEACHER_DAILY_EXCEEDED': '{teacher}先生の{day}曜日の時数が上限を超えています（{hours}/{cap}）',
    'TEACHER_SAME_CLASS_DAILY': '{teacher}先生が{day}曜日に{class_ref}を{hours}回担当しています（上限{cap}）',
    'ZERO_HOURS_CLASS': '{class_ref}は週時数0のクラスですが{hours}コマ配置されています',
    'CLASS_WEEKLY_EXCEEDED': '{class_ref}の週当たり時数が上限を超えています（{hours}/{cap}）',
    'CLASS_DAILY_EXCEEDED': '{class_ref}の{day}曜日の時数が上限を超えています（{hours}/{cap}）',
    'CO_TEACHING_SHORTFALL': '{teacher}先生の協力授業が不足しています（{hours}/{target}）',
    'CO_TEACHING_SOLO': '{teacher}先生の{subject}が協力授業なしで{hours}コマ配置されています',
    'CO_TEACHING_TOO_MANY': '{class_ref}の{time_slot}の協力授業の教員数が上限を超えています（{count}/{cap}）',
    'DAILY_SUBJECT_DUPLICATE': '{class_ref}の{day}曜日に{subject}が{count}回あります',
    'SUBJECT_CONCURRENCY': '{time_slot}に{subject}を{count}クラスが同時に実施しています（上限{cap}）',
    'MUTUAL_EXCLUSION': '{teacher}先生と{other}先生が{time_slot}に同時に授業しています',
    'BLOCK_PERIOD_UNPAIRED': '{teacher}先生の{class_ref}の{time_slot}の授業が連続2コマになっていません',
}
