"""
Knowledge Partition Registry.

Fixed mapping from topic label to the collection holding that topic's
lecture passages.  Built once at startup, read-only afterwards, safe
to share between concurrent invocations.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from lectureqa.core.config import Settings
from lectureqa.core.errors import ConfigurationError
from lectureqa.schemas.retrieval import Partition
from lectureqa.schemas.routing import NONE_TOPIC_NAME, Topic
from lectureqa.utils.logging import get_logger

logger = get_logger("lectureqa.pipeline.registry")


class PartitionRegistry:
    """Registered topics (in precedence order) and their partitions."""

    def __init__(self, topics: Iterable[Topic], partitions: Iterable[Partition]):
        topic_map: dict[str, Topic] = {}
        for topic in topics:
            if topic.name == NONE_TOPIC_NAME:
                raise ConfigurationError(f"'{NONE_TOPIC_NAME}' is reserved for the sentinel topic")
            if topic.name in topic_map:
                raise ConfigurationError(f"Duplicate topic: {topic.name}")
            topic_map[topic.name] = topic

        partition_map: dict[str, Partition] = {}
        for partition in partitions:
            if partition.topic not in topic_map:
                raise ConfigurationError(
                    f"Partition {partition.collection_name!r} references unknown topic {partition.topic!r}"
                )
            if partition.topic in partition_map:
                raise ConfigurationError(f"Duplicate partition for topic: {partition.topic}")
            partition_map[partition.topic] = partition

        self._topics: Mapping[str, Topic] = MappingProxyType(topic_map)
        self._partitions: Mapping[str, Partition] = MappingProxyType(partition_map)

        missing = [name for name in topic_map if name not in partition_map]
        if missing:
            logger.warning("Topics without a registered partition: %s", missing)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PartitionRegistry":
        endpoint = settings.vector_store_url or settings.vector_store_persist_directory
        credential_ref = "vector_store_api_key" if settings.vector_store_api_key else None
        partitions = [
            Partition(
                topic=topic_name,
                collection_name=collection_name,
                endpoint=endpoint,
                credential_ref=credential_ref,
            )
            for topic_name, collection_name in settings.lectureqa_partitions.items()
        ]
        return cls(settings.lectureqa_topics, partitions)

    def topics(self) -> list[Topic]:
        """Registered topics in configuration (tie-break) order."""
        return list(self._topics.values())

    def topic_names(self) -> list[str]:
        return list(self._topics.keys())

    def get_topic(self, name: str) -> Topic | None:
        return self._topics.get(name)

    def partition_for(self, topic: Topic | str) -> Partition | None:
        name = topic if isinstance(topic, str) else topic.name
        return self._partitions.get(name)

    def partitions(self) -> list[Partition]:
        return list(self._partitions.values())
