"""Tests for routing document management."""

import random

import pytest

from clusterstate.controller.routing import RoutingAssignmentController
from clusterstate.errors import InsufficientCapacityError, NotFoundError
from clusterstate.state.desired_state import SegmentState, build_routing_document
from clusterstate.store.in_memory import InMemoryCoordinationStore

BROKERS = ["Broker_h1_8099", "Broker_h2_8099", "Broker_h3_8099", "Broker_h4_8099"]


@pytest.fixture
def routing_store():
    return InMemoryCoordinationStore()


@pytest.fixture
def controller(routing_store):
    return RoutingAssignmentController(routing_store, rng=random.Random(5))


@pytest.fixture
def doc():
    return build_routing_document("brokerResource")


class TestAddResource:
    """Test add_resource."""
    
    def test_add_new_resource(self, controller, doc):
        """Test a new resource gets the desired number of ONLINE instances."""
        result = controller.add_resource(doc, "orders", 2, BROKERS)
        
        states = result.get_instance_state_map("orders")
        assert len(states) == 2
        assert set(states) <= set(BROKERS)
        assert all(s == SegmentState.ONLINE for s in states.values())
    
    def test_insufficient_capacity(self, controller, doc):
        """Test a small routing pool is reported."""
        with pytest.raises(InsufficientCapacityError):
            controller.add_resource(doc, "orders", 5, BROKERS)
        
        assert doc.get_instance_set("orders") == []
    
    def test_existing_resource_is_rescaled(self, controller, doc):
        """Test adding an existing resource goes through scaling."""
        controller.add_resource(doc, "orders", 1, BROKERS)
        
        result = controller.add_resource(doc, "orders", 3, BROKERS)
        
        assert len(result.live_instances("orders")) == 3


class TestScaleResource:
    """Test scale_resource."""
    
    def test_scale_up_keeps_existing(self, controller, doc):
        """Test scale-up only adds instances not already ONLINE."""
        doc.set_partition_state("orders", BROKERS[0], SegmentState.ONLINE)
        
        for seed in range(10):
            controller._rng = random.Random(seed)
            scaled = build_routing_document("brokerResource")
            scaled.set_partition_state("orders", BROKERS[0], SegmentState.ONLINE)
            
            result = controller.scale_resource(scaled, "orders", 3, BROKERS)
            
            instances = result.get_instance_set("orders")
            assert len(instances) == 3
            assert BROKERS[0] in instances
    
    def test_equal_is_noop(self, controller, doc, routing_store):
        """Test scaling to the current count changes nothing."""
        doc.set_partition_state("orders", BROKERS[0], SegmentState.ONLINE)
        before = doc.to_dict()
        
        result = controller.scale_resource(doc, "orders", 1, BROKERS)
        
        assert result.to_dict() == before
        assert routing_store.journal == []
    
    def test_scale_down_writes_then_disables_then_enables(self, controller, doc, routing_store):
        """Test the removal ordering: write, disable, re-enable."""
        for broker in BROKERS[:3]:
            doc.set_partition_state("orders", broker, SegmentState.ONLINE)
        doc.set_partition_state("events", BROKERS[0], SegmentState.ONLINE)
        
        result = controller.scale_resource(doc, "orders", 1, BROKERS)
        
        assert result is None
        
        journal = routing_store.journal
        assert journal[0][0] == "write"
        persisted = journal[0][2]["partitions"]
        assert list(persisted["orders"]) == [BROKERS[2]]
        assert persisted["events"] == {BROKERS[0]: "ONLINE"}
        
        removed = [BROKERS[0], BROKERS[1]]
        assert [entry[1] for entry in journal[1:]] == [
            (False, "brokerResource", removed[0], ("orders",)),
            (False, "brokerResource", removed[1], ("orders",)),
            (True, "brokerResource", removed[0], ("orders",)),
            (True, "brokerResource", removed[1], ("orders",)),
        ]
        for broker in removed:
            assert routing_store.is_partition_enabled("brokerResource", broker, "orders")
    
    def test_removed_instance_absent_not_dropped(self, controller, doc, routing_store):
        """Test removed instances vanish instead of turning DROPPED."""
        doc.set_partition_state("orders", BROKERS[0], SegmentState.ONLINE)
        doc.set_partition_state("orders", BROKERS[1], SegmentState.ONLINE)
        
        controller.scale_resource(doc, "orders", 1, BROKERS)
        
        persisted = routing_store.get_desired_state("brokerResource")
        assert persisted.get_instance_state_map("orders") == {BROKERS[1]: SegmentState.ONLINE}


class TestRemoveResource:
    """Test remove_resource."""
    
    def test_remove(self, controller, doc):
        """Test the entry is erased."""
        controller.add_resource(doc, "orders", 2, BROKERS)
        
        controller.remove_resource(doc, "orders")
        
        assert "orders" not in doc.partition_set()
    
    def test_remove_unknown(self, controller, doc):
        """Test removing a resource never added fails."""
        with pytest.raises(NotFoundError):
            controller.remove_resource(doc, "orders")
