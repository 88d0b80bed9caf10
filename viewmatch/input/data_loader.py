"""
data_loader.py - 센서 로그 로더

기록된 센서 로그(CSV)를 읽어 재생용 샘플/스트림으로 변환합니다.

CSV 형식:
    sensor,timestamp,x,y,z
    accelerometer,0,0.01,-0.02,-9.80
    magnetometer,5,24.1,0.3,40.2
    gyroscope,10,0.0,0.0,0.01

Version: 1.0
Author: FurSys AI Team
"""

import pandas as pd
from pathlib import Path
from typing import Dict, Iterator, List
import logging

from .sensor_stream import SensorKind, SensorSample, ReplaySensorStream

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ['sensor', 'timestamp', 'x', 'y', 'z']


class SensorLogLoader:
    """
    센서 로그 통합 로더

    Example:
        >>> loader = SensorLogLoader("./session_001.csv")
        >>> for sample in loader:
        ...     process(sample)
    """

    def __init__(self, log_path: str):
        """
        Args:
            log_path: CSV 로그 파일 경로
        """
        self.log_path = Path(log_path)

        if not self.log_path.exists():
            raise FileNotFoundError(f"Sensor log not found: {log_path}")

        self.df = self._load()

        logger.info(f"SensorLogLoader: {len(self.df)} samples from {self.log_path.name}")

    def _load(self) -> pd.DataFrame:
        """CSV 로드 및 검증"""
        df = pd.read_csv(self.log_path)
        df.columns = [c.strip().lower() for c in df.columns]

        missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"Sensor log missing columns: {missing}")

        df['sensor'] = df['sensor'].astype(str).str.strip().str.lower()

        known = {kind.value for kind in SensorKind}
        unknown = df.loc[~df['sensor'].isin(known), 'sensor'].unique()
        if len(unknown) > 0:
            logger.warning(f"Dropping rows with unknown sensor names: {list(unknown)}")
            df = df[df['sensor'].isin(known)]

        # 동일 타임스탬프는 기록 순서 유지
        df = df.sort_values('timestamp', kind='stable').reset_index(drop=True)
        return df

    def _row_to_sample(self, row) -> SensorSample:
        return SensorSample(
            kind=SensorKind(row.sensor),
            x=float(row.x),
            y=float(row.y),
            z=float(row.z),
            timestamp_ms=float(row.timestamp)
        )

    def samples(self) -> List[SensorSample]:
        """타임스탬프 순으로 병합된 전체 샘플"""
        return [self._row_to_sample(row) for row in self.df.itertuples(index=False)]

    def samples_for(self, kind: SensorKind) -> List[SensorSample]:
        """특정 센서의 샘플"""
        subset = self.df[self.df['sensor'] == kind.value]
        return [self._row_to_sample(row) for row in subset.itertuples(index=False)]

    def streams(self) -> Dict[SensorKind, ReplaySensorStream]:
        """
        센서별 재생 스트림 생성

        로그에 없는 센서는 사용 불가 스트림으로 생성합니다.
        """
        streams = {}
        for kind in SensorKind:
            samples = self.samples_for(kind)
            streams[kind] = ReplaySensorStream(kind, samples, available=len(samples) > 0)
        return streams

    @property
    def sensors(self) -> List[str]:
        """로그에 포함된 센서 이름"""
        return sorted(self.df['sensor'].unique().tolist())

    @property
    def duration_ms(self) -> float:
        if len(self.df) == 0:
            return 0.0
        return float(self.df['timestamp'].iloc[-1] - self.df['timestamp'].iloc[0])

    def __len__(self) -> int:
        return len(self.df)

    def __iter__(self) -> Iterator[SensorSample]:
        for row in self.df.itertuples(index=False):
            yield self._row_to_sample(row)
