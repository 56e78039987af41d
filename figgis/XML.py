#    figgis/XML.py - XML marshalling for Figgis.
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
r"""figgis/XML.py walks object graphs of marshalled types into ElementTree documents and
back.  It provides functions similar to those found in :mod:`pickle` or :mod:`json`, but
the representation is XML shaped by each type's member declarations.

The public interface should be very familiar to anyone who has used the :mod:`json`,
:mod:`pickle` or mod:`marshal` modules; the only difference is that reading needs the
expected type, since the document does not name Python types.

For a type declared as::

    @marshalled( Member( 'Id', int, attribute = 'id' ), Member( 'Name', str )
        , Member( 'Tags', ListOf( str, item_name = 'Tag' ) ), Member( 'Owner', Person ) )
    class Account ( object ) : ...

the document is::

    <Account>                       - the root envelope (always written, always read)
      <Account id="7">              - the value itself; ``root`` overrides both names
        <Name>main</Name>           - scalars, enums (by name) and dates (ISO-8601)
        <Tags>                      - a collection: a wrapper element...
          <Tag>a</Tag>              - ...holding one element per item, in order
          <Tag>b</Tag>
        </Tags>
        <Owner>...</Owner>          - nested objects recurse
      </Account>
    </Account>

``None`` is written as an empty element; reading an empty element leaves the current
value untouched.  A member that fails to write is written empty, and one that fails to
read keeps its current value: one broken field never costs the whole document.  Pass
``strict = True`` to have those failures raised instead.
"""
import logging
import xml.etree.ElementTree as ET
from xml.sax import saxutils

from figgis import ( SCALAR, ENUM, DATE, LIST, OBJECT, ATTRIBUTE, TEXT, IGNORE
    , describe, lookup, element_name, resolve_type_name, kind_of
    , to_text, from_text, instantiate, AccessError, ElementNameMismatch, ParseError )
from figgis import access

__version__ = "0.1"
__author__ = "Shawn Sulma <genosha@470th.org>"
__all__ = [ 'marshal', 'unmarshal', 'dumps', 'dump', 'loads', 'load', 'tostring', 'parse'
    , 'XMLWriter', 'XMLReader', 'RootEnvelope', 'Context' ]

log = logging.getLogger( __name__ )

DECLARATION = '<?xml version="1.0" encoding="utf-8"?>'

def marshal ( value, accessors = None, strict = False ) :
    r"""Prepares the passed ``value`` for expression as XML output."""
    return ET.ElementTree( XMLWriter( accessors, strict ).write( value ) )

def unmarshal ( xmldoc, kind, default = None, accessors = None, strict = False ) :
    r"""Translates the passed XML etree ``xmldoc`` into an instance of ``kind``, populating
    ``default`` when one is given."""
    return XMLReader( xmldoc, accessors, strict ).read( kind, default )

def dumps ( value, indent = '  ', **options ) :
    r"""Dump the passed ``value`` (and the object graph below it) as XML which is
    returned as a string."""
    return DECLARATION + '\n' + tostring( marshal( value, **options ).getroot(), indent )

def dump ( value, f, indent = '  ', **options ) :
    r"""Dump the passed ``value`` as XML which is written to the text file-like object
    ``f`` (which has a .write method)."""
    f.write( dumps( value, indent, **options ) )

def loads ( s, kind, **options ) :
    r"""Convert the passed XML string ``s`` back into an instance of ``kind``."""
    if isinstance( s, str ) :
        s = s.encode( 'utf-8' )
    try :
        root = ET.fromstring( s )
    except ET.ParseError as ex :
        raise ParseError( "malformed XML: %s" % ex ) from ex
    return unmarshal( root, kind, **options )

def load ( f, kind, **options ) :
    r"""Read an XML document from the file-like object (or file name) ``f`` and convert
    it back into an instance of ``kind``."""
    return unmarshal( parse( f ), kind, **options )

def parse ( source ) :
    try :
        return ET.parse( source )
    except ET.ParseError as ex :
        raise ParseError( "malformed XML: %s" % ex ) from ex

_text_entities = { '\r' : '&#xD;', '\n' : '&#xA;' }
_attribute_entities = { '"' : '&quot;', '\r' : '&#xD;', '\n' : '&#xA;', '\t' : '&#x9;' }

def tostring ( element, indent = '  ', newline = '\n' ) :
    r"""Renders ``element`` with one level of ``indent`` per depth.  Line breaks inside
    text and attribute values are written as character references so that they survive
    a parse; elements holding text alongside children are not indented."""
    out = []
    _serialize( out.append, element, 0, indent, newline )
    return ''.join( out )

def _serialize ( write, element, depth, indent, newline ) :
    write( '<' + element.tag )
    for key, value in element.attrib.items() :
        write( ' %s="%s"' % ( key, saxutils.escape( value, _attribute_entities ) ) )
    children = list( element )
    if not children and not element.text :
        write( ' />' )
        return
    write( '>' )
    if element.text :
        write( saxutils.escape( element.text, _text_entities ) )
    mixed = bool( element.text ) or any( child.tail for child in children )
    for child in children :
        if not mixed :
            write( newline + indent * ( depth + 1 ) )
        _serialize( write, child, depth + 1, indent, newline )
        if child.tail :
            write( saxutils.escape( child.tail, _text_entities ) )
    if children and not mixed :
        write( newline + indent * depth )
    write( '</%s>' % element.tag )

def split_tag ( tag ) :
    r"""``'{uri}local'`` -> ``( 'local', 'uri' )``."""
    if tag[:1] == '{' :
        namespace, local = tag[1:].split( '}', 1 )
        return local, namespace
    return tag, ''

class Context ( object ) :
    r"""State of a single walk: the path of open elements (for diagnostics) and the
    namespace elements are matched in."""
    __slots__ = ( 'path', 'namespace' )
    def __init__ ( self, namespace = '' ) :
        self.path = []
        self.namespace = namespace
    def where ( self, name = None ) :
        return "/".join( self.path + ( [ name ] if name else [] ) ) or "(document)"

class RootEnvelope ( object ) :
    r"""The outer element around a top-level value.  The writer always emits it; the
    reader must always assert and consume it before reading the value inside."""
    __slots__ = ( 'kind', 'name' )
    def __init__ ( self, kind ) :
        self.kind = kind
        self.name = resolve_type_name( kind )

    def write ( self, writer, value ) :
        root = ET.Element( self.name )
        writer.write_object( root, self.name, value, self.kind )
        return root

    def read ( self, reader, default = None ) :
        if default is None :
            default = instantiate( self.kind )
        if not reader.read_start( self.name ) :
            return default
        try :
            return reader.read_object( self.name, default, self.kind )
        finally :
            reader.read_end()

class XMLWriter ( object ) :
    def __init__ ( self, accessors = None, strict = False ) :
        self.accessors = accessors or access.default()
        self.strict = strict
        self.context = Context()

    def write ( self, value, kind = None ) :
        r"""Returns the root envelope element holding ``value``."""
        return RootEnvelope( kind or type( value ) ).write( self, value )

    def write_object ( self, parent, name, value, kind = None ) -> None :
        name = element_name( type( value ) if value is not None else kind, name )
        self.write_item( parent, name, value, kind )

    def write_item ( self, parent, name, value, kind = None ) -> None :
        element = ET.Element( name )
        if value is not None :
            self._fill( element, lookup( type( value ) ) or describe( kind or type( value ) ), value )
        parent.append( element )

    # scalars, enums and dates differ only in their text form
    def write_value ( self, parent, name, value, kind ) -> None :
        ET.SubElement( parent, name ).text = to_text( value ) or None

    def write_list ( self, parent, name, value, kind ) -> None :
        wrapper = ET.Element( name )
        if value is not None :
            item_name = kind.item_element()
            handler = self.accessors.invoker( self.items[kind_of( kind.item )] )
            for item in value :
                handler( self, ( wrapper, item_name, item, kind.item ) )
        parent.append( wrapper )

    def _fill ( self, element, descriptor, value ) :
        self.context.path.append( element.tag )
        try :
            for member in descriptor.members :
                if member.binding == IGNORE or not member.readable :
                    continue
                try :
                    self._write_member( element, member, value )
                except Exception :
                    if self.strict :
                        raise
                    log.warning( "cannot write %s; written empty.", self.context.where( member.name ), exc_info = True )
                    ET.SubElement( element, member.xml_name )
        finally :
            self.context.path.pop()

    def _write_member ( self, element, member, value ) :
        try :
            item = self.accessors.getter( type( value ), member.attr )( value )
        except Exception as ex :
            raise AccessError( "cannot get '%s' of %s" % ( member.attr, type( value ).__name__ ) ) from ex
        if member.binding == ATTRIBUTE :
            element.set( member.xml_name, to_text( item ) )
        elif member.binding == TEXT :
            text = to_text( item )
            if len( element ) :
                element[-1].tail = ( element[-1].tail or '' ) + text
            else :
                element.text = ( element.text or '' ) + text
        else :
            self.accessors.invoker( self.dispatch[member.value_kind] )( self, ( element, member.xml_name, item, member.kind ) )

    dispatch = { SCALAR : write_value, ENUM : write_value, DATE : write_value, LIST : write_list, OBJECT : write_object }
    items = { SCALAR : write_value, ENUM : write_value, DATE : write_value, OBJECT : write_item }

class _Frame ( object ) :
    __slots__ = ( 'element', 'nodes', 'index' )
    def __init__ ( self, element, nodes ) :
        self.element = element
        self.nodes = nodes
        self.index = 0

def _is_empty ( element ) :
    return not len( element ) and not element.attrib and not element.text

# an empty element stands for '' when the declared kind is text
def _blank ( kind ) :
    if isinstance( kind, type ) and issubclass( kind, str ) :
        return ''
    return None

def _content ( element ) :
    text = ''.join( [ element.text or '' ] + [ child.tail or '' for child in element ] )
    if len( element ) and not text.strip() :
        return '' # indentation only
    return text

class XMLReader ( object ) :
    r"""Reads marshalled values from an element tree, one element at a time, in document
    order."""
    def __init__ ( self, root, accessors = None, strict = False ) :
        if isinstance( root, ET.ElementTree ) :
            root = root.getroot()
        self.accessors = accessors or access.default()
        self.strict = strict
        self.context = Context( split_tag( root.tag )[1] )
        self.frames = [ _Frame( None, [ root ] ) ]

    def read ( self, kind, default = None ) :
        return RootEnvelope( kind ).read( self, default )

    def move_to_element ( self ) :
        r"""Skips comments and processing instructions; returns the current element, or
        None at the end of the enclosing element."""
        frame = self.frames[-1]
        while frame.index < len( frame.nodes ) and not isinstance( frame.nodes[frame.index].tag, str ) :
            frame.index += 1
        if frame.index < len( frame.nodes ) :
            return frame.nodes[frame.index]
        return None

    def _matches ( self, node, name, namespace ) :
        return split_tag( node.tag ) == ( name, self.context.namespace if namespace is None else namespace )

    def is_start ( self, name, namespace = None ) :
        node = self.move_to_element()
        return node is not None and self._matches( node, name, namespace )

    def expect ( self, name, namespace = None ) :
        node = self.move_to_element()
        if node is None :
            raise ElementNameMismatch( "(end of %s)" % self.context.where(), name )
        if not self._matches( node, name, namespace ) :
            raise ElementNameMismatch( node.tag, name )
        return node

    def seek ( self, name, namespace = None ) :
        r"""Like :meth:`expect`, but first skips unknown siblings that precede a match."""
        frame = self.frames[-1]
        node = self.move_to_element()
        if node is not None and not self._matches( node, name, namespace ) :
            for index in range( frame.index + 1, len( frame.nodes ) ) :
                candidate = frame.nodes[index]
                if isinstance( candidate.tag, str ) and self._matches( candidate, name, namespace ) :
                    for skipped in frame.nodes[frame.index:index] :
                        log.debug( "skipping unexpected <%s> in %s", skipped.tag, self.context.where() )
                    frame.index = index
                    break
        return self.expect( name, namespace )

    def read_start ( self, name, namespace = None ) :
        r"""Consumes the start of element ``name``; returns False (having consumed the
        whole element) when it is empty."""
        node = self.expect( name, namespace )
        self.frames[-1].index += 1
        if _is_empty( node ) :
            return False
        self.frames.append( _Frame( node, list( node ) ) )
        self.context.path.append( name )
        return True

    def read_end ( self ) :
        frame = self.frames.pop()
        self.context.path.pop()
        for node in frame.nodes[frame.index:] :
            if isinstance( node.tag, str ) :
                log.debug( "skipping unread <%s> in %s", node.tag, self.context.where( frame.element.tag ) )

    def read_value ( self, name, default, kind ) :
        node = self.expect( name )
        self.frames[-1].index += 1
        if _is_empty( node ) :
            return default
        return from_text( _content( node ), kind )

    def read_list ( self, name, default, kind ) :
        items = []
        if self.read_start( name ) :
            try :
                item_name = kind.item_element()
                handler = self.accessors.invoker( self.items[kind_of( kind.item )] )
                empty = _blank( kind.item )
                frame = self.frames[-1]
                while self.is_start( item_name ) :
                    start = frame.index
                    try :
                        items.append( handler( self, ( item_name, empty, kind.item ) ) )
                    except Exception :
                        if self.strict :
                            raise
                        log.warning( "cannot read item %d of %s; read as %r.", len( items ), self.context.where(), empty, exc_info = True )
                        items.append( empty )
                        # step past an item that failed before it was consumed
                        if frame.index == start :
                            frame.index += 1
            finally :
                self.read_end()
        return items

    def read_object ( self, name, default = None, kind = None, namespace = None ) :
        node = self.expect( name, namespace )
        if _is_empty( node ) :
            self.frames[-1].index += 1
            return default
        value = default if default is not None else instantiate( kind )
        descriptor = lookup( type( value ) ) or describe( kind or type( value ) )
        self.read_start( name, namespace )
        try :
            for member in descriptor.members :
                if member.binding == IGNORE or not member.writable :
                    continue
                try :
                    self._read_member( node, member, value )
                except Exception :
                    if self.strict :
                        raise
                    log.warning( "cannot read %s; value kept.", self.context.where( member.name ), exc_info = True )
        finally :
            self.read_end()
        return value

    def _read_member ( self, node, member, value ) :
        setter = self.accessors.setter( type( value ), member.attr )
        if member.binding == ATTRIBUTE :
            text = node.get( member.xml_name )
            if text is not None :
                setter( value, from_text( text, member.kind ) )
        elif member.binding == TEXT :
            setter( value, from_text( _content( node ), member.kind ) )
        else :
            name = member.xml_name
            if member.value_kind == OBJECT :
                name = element_name( member.kind, name )
            self.seek( name )
            current = _blank( member.kind )
            if current is None and member.readable :
                try :
                    current = self.accessors.getter( type( value ), member.attr )( value )
                except Exception :
                    log.debug( "no current value for %s", self.context.where( member.name ) )
            setter( value, self.accessors.invoker( self.dispatch[member.value_kind] )( self, ( name, current, member.kind ) ) )

    dispatch = { SCALAR : read_value, ENUM : read_value, DATE : read_value, LIST : read_list, OBJECT : read_object }
    items = { SCALAR : read_value, ENUM : read_value, DATE : read_value, OBJECT : read_object }
