"""時間割の骨組みを作成するサービス"""
import logging

from ..entities.generation_input import GenerationInput
from ..entities.schedule import Schedule
from ..exceptions import ConfigurationError


class SkeletonBuilder:
    """生成対象のクラスごとに空きコマだけの行を作成する

    週時数0が設定されたクラスは行を作らないため、以降のどの段階からも書き込めません。
    """

    def __init__(self) -> None:
        self.logger = logging.getLogger(__name__)

    def build(self, generation_input: GenerationInput) -> Schedule:
        """空の時間割を作成

        Raises:
            ConfigurationError: 生成対象のクラスが1つも無い場合
        """
        structure = generation_input.structure
        schedule = Schedule(structure.periods_per_day)

        for class_ref in structure.class_refs():
            if generation_input.is_zero_hours_class(class_ref):
                self.logger.debug(f"{class_ref}は週時数0のため生成対象から除外します")
                continue
            schedule.add_class(class_ref)

        if not schedule.classes:
            raise ConfigurationError(
                "生成対象のクラスがありません（全クラスの週時数が0です）",
                config_key="class_weekly_hours"
            )
        return schedule
