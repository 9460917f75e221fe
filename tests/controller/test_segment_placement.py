"""Tests for segment placement."""

import random

import pytest

from clusterstate.controller.segment_placement import SegmentPlacementController
from clusterstate.errors import InsufficientCapacityError, NotFoundError
from clusterstate.state.desired_state import SegmentState
from clusterstate.state.metadata import SegmentMetadata
from clusterstate.strategy.assignment import RandomAssignmentStrategy


def segment(name):
    return SegmentMetadata(resource_name="orders", segment_name=name)


@pytest.fixture
def controller(store):
    return SegmentPlacementController(store)


@pytest.fixture
def strategy():
    return RandomAssignmentStrategy(random.Random(3))


class TestBuildEmptyState:
    """Test empty document construction."""
    
    def test_build_empty_state(self, controller):
        """Test an empty resource document."""
        doc = controller.build_empty_state("orders", 2)
        
        assert doc.resource_name == "orders"
        assert doc.num_partitions == 0
        assert doc.num_replicas == 2
        assert doc.instance_group_tag == "orders"
        assert doc.partitions == {}
    
    def test_build_empty_routing_state(self, controller):
        """Test the empty routing document."""
        doc = controller.build_empty_routing_state("brokerResource")
        
        assert doc.is_unbounded
        assert doc.partitions == {}


class TestAddOrUpdateSegment:
    """Test add_or_update_segment."""
    
    def test_add_new_segment(self, controller, strategy):
        """Test a new segment gets replica_count ONLINE instances."""
        doc = controller.build_empty_state("orders", 2)
        
        controller.add_or_update_segment(doc, "seg1", segment("seg1"), strategy, 2, "orders")
        
        states = doc.get_instance_state_map("seg1")
        assert len(states) == 2
        assert set(states) <= {"A", "B", "C", "D"}
        assert all(s == SegmentState.ONLINE for s in states.values())
        assert doc.num_partitions == 1
    
    def test_each_new_segment_adds_one_partition(self, controller, strategy):
        """Test num_partitions grows by one per new segment."""
        doc = controller.build_empty_state("orders", 2)
        
        for i in range(5):
            before = doc.num_partitions
            controller.add_or_update_segment(doc, f"seg{i}", segment(f"seg{i}"), strategy, 2, "orders")
            assert doc.num_partitions == before + 1
    
    def test_update_pulses_existing_instances(self, controller, strategy):
        """Test re-adding a segment pulses OFFLINE then ONLINE."""
        doc = controller.build_empty_state("orders", 2)
        controller.add_or_update_segment(doc, "seg1", segment("seg1"), strategy, 2, "orders")
        instances = doc.get_instance_set("seg1")
        
        seen = []
        doc.add_listener(lambda p, i, s: seen.append((i, s)))
        
        controller.add_or_update_segment(doc, "seg1", segment("seg1"), strategy, 2, "orders")
        
        assert doc.get_instance_set("seg1") == instances
        assert doc.num_partitions == 1
        for instance in instances:
            assert [s for i, s in seen if i == instance] == [SegmentState.OFFLINE, SegmentState.ONLINE]
        assert all(s == SegmentState.ONLINE for s in doc.get_instance_state_map("seg1").values())
    
    def test_update_does_not_consult_strategy(self, controller):
        """Test an existing segment keeps its instances."""
        class FailingStrategy(RandomAssignmentStrategy):
            def select(self, *args, **kwargs):
                raise AssertionError("strategy must not be called")
        
        doc = controller.build_empty_state("orders", 1)
        doc.set_partition_state("seg1", "A", SegmentState.ONLINE)
        
        controller.add_or_update_segment(doc, "seg1", segment("seg1"), FailingStrategy(), 1, "orders")
        
        assert doc.get_instance_state_map("seg1") == {"A": SegmentState.ONLINE}
    
    def test_re_add_after_drop_starts_fresh(self, controller, strategy):
        """Test a dropped segment is placed again instead of resurrected."""
        doc = controller.build_empty_state("orders", 2)
        controller.add_or_update_segment(doc, "seg1", segment("seg1"), strategy, 2, "orders")
        controller.drop_segment(doc, "seg1")
        
        controller.add_or_update_segment(doc, "seg1", segment("seg1"), strategy, 2, "orders")
        
        states = doc.get_instance_state_map("seg1")
        assert len(states) == 2
        assert all(s == SegmentState.ONLINE for s in states.values())
        assert doc.num_partitions == 1
    
    def test_insufficient_capacity(self, controller, strategy):
        """Test the document is untouched when the pool is too small."""
        doc = controller.build_empty_state("orders", 5)
        
        with pytest.raises(InsufficientCapacityError):
            controller.add_or_update_segment(doc, "seg1", segment("seg1"), strategy, 5, "orders")
        
        assert doc.partitions == {}
        assert doc.num_partitions == 0
    
    def test_add_realtime_segment(self, controller):
        """Test a sealed realtime segment lands on its consumer."""
        doc = controller.build_empty_state("events", 1)
        
        controller.add_realtime_segment(doc, "events__0__1", "Server_h1_8001")
        
        assert doc.get_instance_state_map("events__0__1") == {"Server_h1_8001": SegmentState.ONLINE}
        assert doc.num_partitions == 1


class TestDropAndRemoveSegment:
    """Test drop_segment and remove_segment."""
    
    def test_drop_then_remove(self, controller, strategy):
        """Test drop marks DROPPED and remove erases the segment."""
        doc = controller.build_empty_state("orders", 2)
        controller.add_or_update_segment(doc, "seg1", segment("seg1"), strategy, 2, "orders")
        
        controller.drop_segment(doc, "seg1")
        
        states = doc.get_instance_state_map("seg1")
        assert len(states) == 2
        assert all(s == SegmentState.DROPPED for s in states.values())
        
        controller.remove_segment(doc, "seg1")
        
        assert "seg1" not in doc.partition_set()
        assert doc.num_partitions == 0
    
    def test_drop_unknown_segment(self, controller):
        """Test dropping a segment never added fails."""
        doc = controller.build_empty_state("orders", 2)
        
        with pytest.raises(NotFoundError):
            controller.drop_segment(doc, "missing")
    
    def test_remove_unknown_segment(self, controller):
        """Test removing a segment never added fails."""
        doc = controller.build_empty_state("orders", 2)
        
        with pytest.raises(NotFoundError):
            controller.remove_segment(doc, "missing")
    
    def test_remove_twice(self, controller, strategy):
        """Test a removed segment cannot be removed again."""
        doc = controller.build_empty_state("orders", 1)
        controller.add_or_update_segment(doc, "seg1", segment("seg1"), strategy, 1, "orders")
        controller.remove_segment(doc, "seg1")
        
        with pytest.raises(NotFoundError):
            controller.remove_segment(doc, "seg1")


class TestUpdateSegmentInPlace:
    """Test update_segment_in_place."""
    
    def test_offline_phase_is_persisted(self, controller, store):
        """Test the store sees OFFLINE before the document returns ONLINE."""
        doc = controller.build_empty_state("orders", 2)
        doc.set_partition_state("seg1", "A", SegmentState.ONLINE)
        doc.set_partition_state("seg1", "B", SegmentState.ONLINE)
        
        controller.update_segment_in_place(doc, "seg1", store)
        
        writes = store.writes("orders")
        assert len(writes) == 1
        assert writes[0]["partitions"]["seg1"] == {"A": "OFFLINE", "B": "OFFLINE"}
        assert doc.get_instance_state_map("seg1") == {
            "A": SegmentState.ONLINE,
            "B": SegmentState.ONLINE,
        }
    
    def test_unknown_segment(self, controller, store):
        """Test updating a missing segment fails without writing."""
        doc = controller.build_empty_state("orders", 2)
        
        with pytest.raises(NotFoundError):
            controller.update_segment_in_place(doc, "missing", store)
        
        assert store.writes() == []
    
    def test_dropped_segment(self, controller, store):
        """Test updating a fully dropped segment fails without writing."""
        doc = controller.build_empty_state("orders", 2)
        doc.set_partition_state("seg1", "A", SegmentState.DROPPED)
        doc.set_partition_state("seg1", "B", SegmentState.DROPPED)
        
        with pytest.raises(NotFoundError):
            controller.update_segment_in_place(doc, "seg1", store)
        
        assert store.writes() == []
        assert doc.get_instance_state_map("seg1") == {
            "A": SegmentState.DROPPED,
            "B": SegmentState.DROPPED,
        }
