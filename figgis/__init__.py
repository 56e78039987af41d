#    figgis/__init__.py - Figgis type metadata, naming rules and errors.
#    Copyright (C) 2009 Shawn Sulma <genosha@470th.org>
#
#    This program is free software: you can redistribute it and/or modify
#    it under the terms of the GNU General Public License as published by
#    the Free Software Foundation, either version 3 of the License, or
#    (at your option) any later version.
#
#    This program is distributed in the hope that it will be useful,
#    but WITHOUT ANY WARRANTY; without even the implied warranty of
#    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#    GNU General Public License for more details.
#
#    You should have received a copy of the GNU General Public License
#    along with this program.  If not, see <http://www.gnu.org/licenses/>.
r"""FIGGIS is a library to marshal Python objects to and from XML documents whose shape
is declared, per type, by the calling code.  Where :mod:`pickle` records whatever an
object happens to hold, figgis writes exactly the members a type declares, under the
names it declares, so that the file can be read (and edited) by people and by other
tools.

Each marshalled type carries a table of :class:`Member` declarations, registered once
through the :func:`marshalled` class decorator (or :func:`describe`).  A member may be
bound to an XML attribute, to the element's text, or to a child element; it may also be
ignored.  Members may be bound to private (even name-mangled) attributes, and read-only
properties are written but never read back.

The following value kinds are understood:

 - scalars (``bool``, ``int``, ``float``, ``Decimal``, ``complex``, ``str``);
 - :class:`enum.Enum` subclasses, written by member name;
 - ``datetime``, ``date`` and ``time``, written in ISO-8601 form;
 - collections of any of these, declared as ``ListOf( item )``;
 - other marshalled types, nested to any depth.

Cyclic object graphs are not supported (the walk would not terminate).

Three modules build on this one: :mod:`figgis.access` caches fast member
accessors, :mod:`figgis.XML` walks object graphs to and from ElementTree documents, and
:mod:`figgis.store` keeps a document on disk with atomic replacement.
"""
from collections import namedtuple
from datetime import date, datetime, time
from decimal import Decimal
import enum, inspect, logging, threading

__version__ = "0.1"
__author__ = "Shawn Sulma <genosha@470th.org>"
__all__ = [ 'Member', 'ListOf', 'MemberDescriptor', 'TypeDescriptor', 'marshalled', 'describe', 'lookup'
    , 'resolve_type_name', 'resolve_member', 'resolve_item_name', 'element_name'
    , 'kind_of', 'to_text', 'from_text', 'instantiate'
    , 'FiggisError', 'ElementNameMismatch', 'NoSetterError', 'ConversionError', 'AccessError'
    , 'ParseError', 'StoreError', 'NotFound', 'StabilityFailure', 'SaveError' ]

log = logging.getLogger( __name__ )

# value kinds
SCALAR, ENUM, DATE, LIST, OBJECT = 'scalar', 'enum', 'date', 'list', 'object'
# binding kinds
ATTRIBUTE, TEXT, ELEMENT, IGNORE = 'attribute', 'text', 'element', 'ignore'

class FiggisError ( Exception ) :
    pass

class ElementNameMismatch ( FiggisError, ValueError ) :
    def __init__ ( self, found, expected ) :
        FiggisError.__init__( self, "element name mismatch: reading <%s> as <%s>." % ( found, expected ) )
        self.found = found
        self.expected = expected

class NoSetterError ( FiggisError, AttributeError ) :
    def __init__ ( self, kind, attr ) :
        FiggisError.__init__( self, "'%s.%s' has no setter." % ( kind.__name__, attr ) )

class ConversionError ( FiggisError, ValueError ) :
    def __init__ ( self, text, kind ) :
        FiggisError.__init__( self, "cannot convert %r to '%s'." % ( text, getattr( kind, '__name__', kind ) ) )

class AccessError ( FiggisError, AttributeError ) :
    pass

class ParseError ( FiggisError, ValueError ) :
    pass

class StoreError ( FiggisError, IOError ) :
    pass

class NotFound ( StoreError ) :
    pass

class StabilityFailure ( StoreError ) :
    pass

class SaveError ( StoreError ) :
    pass

class ListOf ( object ) :
    r"""Declared kind of a collection member: a sequence of ``item``.  ``item_name``
    overrides the element name of each item for this member only."""
    __slots__ = ( 'item', 'item_name' )
    def __init__ ( self, item, item_name = None ) :
        if isinstance( item, ListOf ) :
            raise TypeError( "nested collections are not supported." )
        self.item = item
        self.item_name = item_name
    def item_element ( self ) :
        r"""Element name of each item: ``item_name``, else the item type's own."""
        return self.item_name or resolve_item_name( self.item )
    def __repr__ ( self ) :
        return "ListOf(%s)" % getattr( self.item, '__name__', self.item )

class Member ( object ) :
    r"""Declares a single marshalled member.

    ``name`` is the member's own name (and the default XML name); ``kind`` its declared
    type.  ``attr`` names the bound Python attribute when it differs from ``name``; a
    leading double underscore is mangled against the owning class.  ``attribute`` (True,
    or an explicit name) binds the member to an XML attribute, ``text`` to the element
    text and ``element`` renames the child element.  ``ignore`` drops the member in both
    directions.  ``readable`` and ``writable`` default to what a property allows, or True.
    """
    __slots__ = ( 'name', 'kind', 'attr', 'attribute', 'element', 'text', 'ignore', 'readable', 'writable' )
    def __init__ ( self, name, kind, attr = None, attribute = None, element = None, text = False, ignore = False, readable = None, writable = None ) :
        self.name = name
        self.kind = kind
        self.attr = attr
        self.attribute = attribute
        self.element = element
        self.text = text
        self.ignore = ignore
        self.readable = readable
        self.writable = writable
    def __repr__ ( self ) :
        return "<Member:" + ",".join( slot + "=" + repr( getattr( self, slot ) ) for slot in self.__slots__ ) + ">"

MemberDescriptor = namedtuple( 'MemberDescriptor', 'owner name attr kind value_kind binding xml_name readable writable' )

TypeDescriptor = namedtuple( 'TypeDescriptor', 'kind root item members' )

_descriptors = {}
_lock = threading.Lock()

def marshalled ( *members, **options ) :
    r"""Class decorator registering ``members`` (in declaration order) for the class.
    Accepts ``root`` (element name override) and ``item`` (collection item name override)."""
    def register ( kind ) :
        describe( kind, members, **options )
        return kind
    return register

def describe ( kind, members = None, root = None, item = None ) :
    r"""Registers (when ``members`` is given) or returns the descriptor of ``kind``."""
    if members is None :
        descriptor = lookup( kind )
        if descriptor is None :
            raise TypeError( "'%s' is not a marshalled type." % getattr( kind, '__name__', kind ) )
        return descriptor
    descriptor = TypeDescriptor( kind, root, item, tuple( _describe_member( kind, member ) for member in members ) )
    with _lock :
        _descriptors[kind] = descriptor
    log.debug( "described %s: %s", kind.__name__, ", ".join( m.name for m in descriptor.members ) )
    return descriptor

def lookup ( kind ) :
    for base in inspect.getmro( kind ) :
        descriptor = _descriptors.get( base )
        if descriptor is not None :
            return descriptor
    return None

def _mangle ( owner, attr ) :
    if attr.startswith( '__' ) and not attr.endswith( '__' ) :
        return "_%s%s" % ( owner.__name__.lstrip( '_' ), attr )
    return attr

def _describe_member ( owner, member ) :
    attr = _mangle( owner, member.attr or member.name )
    readable, writable = member.readable, member.writable
    prop = inspect.getattr_static( owner, attr, None )
    if isinstance( prop, property ) :
        if readable is None :
            readable = prop.fget is not None
        if writable is None :
            writable = prop.fset is not None
    binding, xml_name = resolve_member( member )
    return MemberDescriptor( owner, member.name, attr, member.kind, kind_of( member.kind ), binding, xml_name
        , readable is not False, writable is not False )

def resolve_type_name ( kind ) :
    r"""Root element name of ``kind``: its ``root`` override, else its class name."""
    descriptor = lookup( kind )
    if descriptor is not None and descriptor.root :
        return descriptor.root
    return kind.__name__

def resolve_member ( member ) :
    r"""Returns the ``( binding, name )`` pair for a :class:`Member`.  Attribute beats
    text beats element; collections are always elements."""
    if member.ignore :
        return IGNORE, member.name
    if not isinstance( member.kind, ListOf ) :
        if member.attribute :
            return ATTRIBUTE, member.attribute if isinstance( member.attribute, str ) else member.name
        if member.text :
            return TEXT, member.name
    return ELEMENT, member.element or member.name

def resolve_item_name ( kind ) :
    descriptor = lookup( kind )
    if descriptor is not None and descriptor.item :
        return descriptor.item
    return kind.__name__

def element_name ( kind, name ) :
    descriptor = lookup( kind )
    if descriptor is not None and descriptor.root :
        return descriptor.root
    return name

_scalars = ( bool, int, float, Decimal, complex, str )

def kind_of ( kind ) :
    if isinstance( kind, ListOf ) :
        return LIST
    if not isinstance( kind, type ) :
        raise TypeError( "%r is not a supported member kind." % ( kind, ) )
    if issubclass( kind, enum.Enum ) :
        return ENUM
    if issubclass( kind, ( datetime, date, time ) ) :
        return DATE
    if issubclass( kind, _scalars ) :
        return SCALAR
    return OBJECT

def to_text ( value ) :
    r"""Locale-independent text form of a scalar, enum or date value."""
    if value is None :
        return ''
    if isinstance( value, enum.Enum ) :
        return value.name
    if isinstance( value, ( datetime, date, time ) ) :
        return value.isoformat()
    if isinstance( value, float ) :
        return repr( value )
    return str( value )

def from_text ( text, kind ) :
    r"""Inverse of :func:`to_text` for the declared ``kind``.  Enum names match
    regardless of case.  Raises :class:`ConversionError`."""
    try :
        if issubclass( kind, enum.Enum ) :
            return _enum( text, kind )
        if issubclass( kind, bool ) :
            return _bool( text )
        if issubclass( kind, ( datetime, date, time ) ) :
            return kind.fromisoformat( text.strip() )
        if issubclass( kind, str ) :
            return kind( text )
        return kind( text.strip() )
    except ( ValueError, TypeError, ArithmeticError ) as ex :
        raise ConversionError( text, kind ) from ex

def _bool ( text ) :
    folded = text.strip().lower()
    if folded in ( 'true', '1' ) :
        return True
    if folded in ( 'false', '0' ) :
        return False
    raise ValueError( text )

def _enum ( text, kind ) :
    name = text.strip()
    if name in kind.__members__ :
        return kind.__members__[name]
    folded = name.lower()
    for key, value in kind.__members__.items() :
        if key.lower() == folded :
            return value
    if name.lstrip( '-' ).isdigit() :
        return kind( int( name ) )
    raise ValueError( "'%s' has no member %r" % ( kind.__name__, name ) )

def instantiate ( kind ) :
    r"""A fresh ``kind``; types whose constructor needs arguments are created bare
    (as :mod:`pickle` does) and populated member by member."""
    try :
        return kind()
    except TypeError :
        return kind.__new__( kind )
