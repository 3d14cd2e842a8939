"""スケジュールエンティティ"""
from collections import Counter, defaultdict
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from ..constants import WEEKDAYS
from ..exceptions import ScheduleAssignmentError
from ..value_objects.time_slot import TimeSlot, ClassReference
from ..value_objects.assignment import Assignment


class Schedule:
    """クラス×曜日×校時の時間割を管理するエンティティ

    空きコマは None で表します。一度埋めたコマは上書きできません。
    教員・クラスごとの時数は割り当てのたびに索引へ反映され、
    制約判定はこの索引を参照します。
    """

    def __init__(self, periods_per_day: Mapping[str, int]):
        self._periods_per_day: Dict[str, int] = {day: periods_per_day.get(day, 0) for day in WEEKDAYS}
        self._rows: Dict[ClassReference, Dict[str, List[Optional[Assignment]]]] = {}

        # 教員 -> 時間枠 -> 担当クラス
        self._teacher_slots: Dict[str, Dict[TimeSlot, List[ClassReference]]] = defaultdict(dict)
        # 教員 -> クラス -> 時数
        self._teacher_class_hours: Dict[str, Counter] = defaultdict(Counter)
        # 教員 -> 曜日 -> 時数
        self._teacher_daily_hours: Dict[str, Counter] = defaultdict(Counter)
        # クラス -> 教科 -> 時数
        self._subject_hours: Dict[ClassReference, Counter] = defaultdict(Counter)
        # (クラス, 曜日) -> 教科 -> 回数
        self._daily_subjects: Dict[Tuple[ClassReference, str], Counter] = defaultdict(Counter)
        # (時間枠, 教科) -> 実施クラス数
        self._subject_concurrency: Counter = Counter()
        self._class_hours: Counter = Counter()
        self._class_daily_hours: Counter = Counter()

    # ---- 構造 ----

    def add_class(self, class_ref: ClassReference) -> None:
        """クラスの行を空きコマで作成"""
        if class_ref in self._rows:
            return
        self._rows[class_ref] = {
            day: [None] * periods for day, periods in self._periods_per_day.items()
        }

    def has_class(self, class_ref: ClassReference) -> bool:
        return class_ref in self._rows

    @property
    def classes(self) -> List[ClassReference]:
        return sorted(self._rows)

    @property
    def periods_per_day(self) -> Dict[str, int]:
        return dict(self._periods_per_day)

    def periods_on(self, day: str) -> int:
        return self._periods_per_day.get(day, 0)

    def contains_slot(self, time_slot: TimeSlot) -> bool:
        return time_slot.period <= self.periods_on(time_slot.day)

    def time_slots(self) -> List[TimeSlot]:
        return [
            TimeSlot(day, period)
            for day in WEEKDAYS
            for period in range(1, self.periods_on(day) + 1)
        ]

    def adjacent_slots(self, time_slot: TimeSlot) -> List[TimeSlot]:
        """同じ曜日の前後の時間枠"""
        return [
            TimeSlot(time_slot.day, period)
            for period in (time_slot.period - 1, time_slot.period + 1)
            if 1 <= period <= self.periods_on(time_slot.day)
        ]

    # ---- 割り当て ----

    def get_assignment(self, time_slot: TimeSlot, class_ref: ClassReference) -> Optional[Assignment]:
        """指定された時間枠・クラスの割り当てを取得（範囲外は None）"""
        row = self._rows.get(class_ref)
        if row is None or not self.contains_slot(time_slot):
            return None
        return row[time_slot.day][time_slot.period - 1]

    def is_empty(self, time_slot: TimeSlot, class_ref: ClassReference) -> bool:
        return (
            class_ref in self._rows
            and self.contains_slot(time_slot)
            and self.get_assignment(time_slot, class_ref) is None
        )

    def assign(self, time_slot: TimeSlot, class_ref: ClassReference, assignment: Assignment) -> None:
        """空きコマに授業を割り当てる

        Raises:
            ScheduleAssignmentError: クラスが無い、校時が範囲外、または既に埋まっている場合
        """
        if class_ref not in self._rows:
            raise ScheduleAssignmentError(
                f"{class_ref}は時間割に含まれていません",
                time_slot=time_slot, class_ref=class_ref, subject=assignment.subject
            )
        if not self.contains_slot(time_slot):
            raise ScheduleAssignmentError(
                f"{time_slot}は{class_ref}の時間割の範囲外です",
                time_slot=time_slot, class_ref=class_ref, subject=assignment.subject
            )
        row = self._rows[class_ref][time_slot.day]
        current = row[time_slot.period - 1]
        if current is not None:
            raise ScheduleAssignmentError(
                f"{class_ref}の{time_slot}は既に{current}が割り当てられています",
                time_slot=time_slot, class_ref=class_ref, subject=assignment.subject
            )

        row[time_slot.period - 1] = assignment
        self._index(time_slot, class_ref, assignment)

    def _index(self, time_slot: TimeSlot, class_ref: ClassReference, assignment: Assignment) -> None:
        for teacher in assignment.teachers:
            self._teacher_slots[teacher].setdefault(time_slot, []).append(class_ref)
            self._teacher_class_hours[teacher][class_ref] += 1
            self._teacher_daily_hours[teacher][time_slot.day] += 1
        self._subject_hours[class_ref][assignment.subject] += 1
        self._daily_subjects[(class_ref, time_slot.day)][assignment.subject] += 1
        self._subject_concurrency[(time_slot, assignment.subject)] += 1
        self._class_hours[class_ref] += 1
        self._class_daily_hours[(class_ref, time_slot.day)] += 1

    # ---- 走査 ----

    def iter_slots(self) -> Iterator[Tuple[ClassReference, TimeSlot, Optional[Assignment]]]:
        """全コマを (クラス, 時間枠, 割り当て) で列挙"""
        for class_ref in self.classes:
            row = self._rows[class_ref]
            for day in WEEKDAYS:
                for index, assignment in enumerate(row[day]):
                    yield class_ref, TimeSlot(day, index + 1), assignment

    def iter_assignments(self) -> Iterator[Tuple[ClassReference, TimeSlot, Assignment]]:
        for class_ref, time_slot, assignment in self.iter_slots():
            if assignment is not None:
                yield class_ref, time_slot, assignment

    def get_empty_slots(self, class_ref: Optional[ClassReference] = None) -> List[Tuple[ClassReference, TimeSlot]]:
        return [
            (cls, slot)
            for cls, slot, assignment in self.iter_slots()
            if assignment is None and (class_ref is None or cls == class_ref)
        ]

    def has_adjacent_lesson(self, class_ref: ClassReference, time_slot: TimeSlot, teacher: str) -> bool:
        """前後の校時に同じ教員の授業があるか（連続授業の判定用）"""
        for neighbor in self.adjacent_slots(time_slot):
            assignment = self.get_assignment(neighbor, class_ref)
            if assignment is not None and assignment.involves_teacher(teacher):
                return True
        return False

    # ---- 集計 ----

    def teacher_classes_at(self, teacher: str, time_slot: TimeSlot) -> List[ClassReference]:
        """教員がその時間枠に担当しているクラス"""
        return list(self._teacher_slots.get(teacher, {}).get(time_slot, ()))

    def is_teacher_busy(self, teacher: str, time_slot: TimeSlot) -> bool:
        return bool(self._teacher_slots.get(teacher, {}).get(time_slot))

    def teacher_busy_slots(self, teacher: str) -> Dict[TimeSlot, List[ClassReference]]:
        return {slot: list(classes) for slot, classes in self._teacher_slots.get(teacher, {}).items()}

    def teacher_hours(self, teacher: str, class_ref: Optional[ClassReference] = None) -> int:
        """教員の担当時数（クラス指定時はそのクラスでの時数）"""
        counter = self._teacher_class_hours.get(teacher)
        if counter is None:
            return 0
        if class_ref is not None:
            return counter[class_ref]
        return sum(counter.values())

    def teacher_class_hours(self, teacher: str) -> Dict[ClassReference, int]:
        return dict(self._teacher_class_hours.get(teacher, {}))

    def teacher_daily_hours(self, teacher: str, day: str) -> int:
        counter = self._teacher_daily_hours.get(teacher)
        return counter[day] if counter is not None else 0

    def teacher_hours_in_class_on_day(self, teacher: str, class_ref: ClassReference, day: str) -> int:
        row = self._rows.get(class_ref)
        if row is None:
            return 0
        return sum(1 for a in row[day] if a is not None and a.involves_teacher(teacher))

    def teacher_hour_totals(self) -> Dict[str, int]:
        """教員ごとの週当たり担当時数"""
        return {
            teacher: sum(counter.values())
            for teacher, counter in sorted(self._teacher_class_hours.items())
        }

    def subject_hours(self, class_ref: ClassReference, subject: str) -> int:
        counter = self._subject_hours.get(class_ref)
        return counter[subject] if counter is not None else 0

    def daily_subject_count(self, class_ref: ClassReference, day: str, subject: str) -> int:
        counter = self._daily_subjects.get((class_ref, day))
        return counter[subject] if counter is not None else 0

    def daily_subject_counts(self) -> Dict[Tuple[ClassReference, str], Dict[str, int]]:
        return {key: dict(counter) for key, counter in self._daily_subjects.items()}

    def classes_with_subject_at(self, time_slot: TimeSlot, subject: str) -> int:
        return self._subject_concurrency[(time_slot, subject)]

    def subject_concurrency(self) -> Dict[Tuple[TimeSlot, str], int]:
        return {key: count for key, count in self._subject_concurrency.items() if count > 0}

    def class_hours(self, class_ref: ClassReference) -> int:
        return self._class_hours[class_ref]

    def class_daily_hours(self, class_ref: ClassReference, day: str) -> int:
        return self._class_daily_hours[(class_ref, day)]

    def fill_statistics(self) -> Tuple[int, int]:
        """(総コマ数, 埋まっているコマ数)"""
        total = len(self._rows) * sum(self._periods_per_day.values())
        filled = sum(self._class_hours.values())
        return total, filled

    @property
    def fill_rate(self) -> float:
        """充足率（%）"""
        total, filled = self.fill_statistics()
        return filled / total * 100.0 if total > 0 else 0.0

    # ---- 複製 ----

    def clone(self) -> 'Schedule':
        """深いコピーを作成（割り当ては不変なので共有する）"""
        copied = Schedule(self._periods_per_day)
        for class_ref in self._rows:
            copied.add_class(class_ref)
        for class_ref, time_slot, assignment in self.iter_assignments():
            copied.assign(time_slot, class_ref, assignment)
        return copied

    def __str__(self) -> str:
        total, filled = self.fill_statistics()
        return f"Schedule({len(self._rows)}クラス, {filled}/{total}コマ)"
