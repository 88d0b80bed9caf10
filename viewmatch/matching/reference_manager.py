"""
기준 자세 관리 모듈
기준 자세 설정, 조회, 리셋 기능

기준 자세는 한 번에 하나만 보관하며(이력 없음),
덮어쓰거나 세션이 끝날 때까지 메모리에만 존재합니다.
"""

from typing import Optional, Dict, Any
import logging

from .pose_matcher import Pose

logger = logging.getLogger(__name__)


class ReferenceManager:
    """
    기준 자세 관리자
    """

    def __init__(self):
        self.reference: Optional[Pose] = None

        logger.debug("ReferenceManager initialized")

    def set_reference(self, pose: Pose):
        """
        기준 자세 설정 (기존 기준은 덮어씀)

        Args:
            pose: 기준 스냅샷
        """
        self.reference = pose

        logger.info(
            f"Reference set: lat={pose.location.latitude:.6f}, "
            f"lon={pose.location.longitude:.6f}, "
            f"orient=(A:{pose.orientation.azimuth:.1f}, "
            f"P:{pose.orientation.pitch:.1f}, R:{pose.orientation.roll:.1f})"
        )

    @property
    def is_set(self) -> bool:
        """기준 자세 설정 여부"""
        return self.reference is not None

    def get_reference(self) -> Optional[Pose]:
        """기준 자세 반환"""
        return self.reference

    def reset(self):
        """기준 자세 리셋"""
        self.reference = None
        logger.info("Reference reset")

    def get_info(self) -> Dict[str, Any]:
        """기준 정보 반환"""
        if self.reference is None:
            return {'is_set': False}

        info = self.reference.to_dict()
        info['is_set'] = True
        return info
